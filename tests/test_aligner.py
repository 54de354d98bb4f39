"""
Test cases for the episode alignment controller. ffmpeg is replaced by a mock probe.
"""
import pytest
from pathlib import Path
import sys
from unittest.mock import Mock

# Add src directory to path for testing
sys.path.insert( 0, str( Path( __file__ ).parent.parent / "src" ) );

from subalign.aligner import EpisodeAligner
from subalign.config import AlignmentConfig, SearchParams
from subalign.errors import EmptyAlignmentWindowError, NoReferenceStreamError
from subalign.media import MediaProbe
from subalign.streams import ReferenceStream


REFERENCE_SPANS = [ ( 1000, 3000 ), ( 5000, 7000 ) ];
JP_SPANS = [ ( 500, 2500 ), ( 4500, 6500 ) ];
EN_SPANS = [ ( 1200, 3200 ), ( 5200, 7200 ) ];

# Silence around REFERENCE_SPANS in an 8 second window
SILENCE_LOG = (
    "[silencedetect @ 0x1] silence_start: 0\n"
    "[silencedetect @ 0x1] silence_end: 1.0 | silence_duration: 1.0\n"
    "[silencedetect @ 0x1] silence_start: 3.0\n"
    "[silencedetect @ 0x1] silence_end: 5.0 | silence_duration: 2.0\n"
    "[silencedetect @ 0x1] silence_start: 7.0\n"
);


def srt_timestamp( ms ):
    hours, rest = divmod( ms, 3600000 );
    minutes, rest = divmod( rest, 60000 );
    seconds, millis = divmod( rest, 1000 );
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}";


def write_srt( path, spans ):
    blocks = [];
    for number, ( start, end ) in enumerate( spans, 1 ):
        blocks.append( f"{number}\n{srt_timestamp( start )} --> {srt_timestamp( end )}\nLine {number}\n" );
    path.write_text( "\n".join( blocks ), encoding="utf-8" );
    return path;


@pytest.fixture
def episode_files( tmp_path ):
    video = tmp_path / "Show S04E30.mkv";
    video.write_bytes( b"" );
    jp = write_srt( tmp_path / "Show S04E30.jp.srt", JP_SPANS );
    en = write_srt( tmp_path / "Show S04E30.en.srt", EN_SPANS );
    return video, jp, en;


@pytest.fixture
def media_probe():
    probe = Mock( spec=MediaProbe );
    probe.get_duration.return_value = 8.0;
    probe.list_subtitle_streams.return_value = [
        ReferenceStream( index=3, codec_name="ass", language="eng", title="signs & songs" ),
        ReferenceStream( index=2, codec_name="subrip", language="eng", title="full subtitles", disposition_default=1 ),
    ];
    probe.extract_subtitle_stream.side_effect = lambda video, index, output: write_srt( output, REFERENCE_SPANS );
    probe.detect_silence.return_value = SILENCE_LOG;
    return probe;


@pytest.fixture
def config():
    return AlignmentConfig(
        search=SearchParams( min_offset_ms=-1000, max_offset_ms=1000, coarse_step_ms=100, fine_step_ms=20 ),
        sample_sec=8.0
    );


class TestReferenceMode:
    """Alignment against the embedded reference track."""

    def test_recovers_both_offsets( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );

        alignment = aligner.align( video, jp, en, episode="s4e30" );

        assert alignment.mode == "reference";
        assert alignment.sample_sec == 8.0;
        assert alignment.jp.offset_ms == 500;
        assert alignment.en.offset_ms == -200;
        assert alignment.jp.confidence == "high";
        assert alignment.en.confidence == "high";
        assert alignment.reference.index == 2;
        assert alignment.basis_intervals == 2;

    def test_extracts_selected_stream_as_srt( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" ).align( video, jp, en );

        args = media_probe.extract_subtitle_stream.call_args[0];
        assert args[1] == 2;
        assert args[2].name == "reference.srt";
        media_probe.detect_silence.assert_not_called();

    def test_temp_files_removed( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        work = tmp_path / "work";
        EpisodeAligner( config=config, media_probe=media_probe, work_dir=work ).align( video, jp, en );
        assert list( work.iterdir() ) == [];

    def test_temp_files_kept( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        work = tmp_path / "work";
        EpisodeAligner( config=config, media_probe=media_probe, work_dir=work, keep_temp=True ).align( video, jp, en );
        assert len( list( work.glob( "*/reference.srt" ) ) ) == 1;

    def test_no_subtitle_stream( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        media_probe.list_subtitle_streams.return_value = [];
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );

        with pytest.raises( NoReferenceStreamError ):
            aligner.align( video, jp, en );
        media_probe.extract_subtitle_stream.assert_not_called();
        assert list( ( tmp_path / "work" ).iterdir() ) == [];

    def test_to_dict( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );
        data = aligner.align( video, jp, en, episode="s4e30" ).to_dict();

        assert data['episode'] == "s4e30";
        assert data['window'] == { 'startSec': 0, 'endSec': 8.0 };
        assert data['reference']['streamIndex'] == 2;
        assert data['jp']['offsetMs'] == 500;
        assert data['en']['offsetMs'] == -200;
        assert data['videoFile'] == str( video.resolve() );


class TestSpeechMode:
    """Alignment against detected speech."""

    def test_recovers_both_offsets( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );

        alignment = aligner.align( video, jp, en, mode="speech" );

        assert alignment.jp.offset_ms == 500;
        assert alignment.en.offset_ms == -200;
        assert alignment.jp.boundary_score == pytest.approx( 1.0 );
        assert alignment.reference is None;
        assert 'reference' not in alignment.to_dict();
        media_probe.detect_silence.assert_called_once_with( video, "0:a:0", 8.0, "-30dB", 0.25 );
        media_probe.list_subtitle_streams.assert_not_called();

    def test_no_work_dir_created( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        work = tmp_path / "work";
        EpisodeAligner( config=config, media_probe=media_probe, work_dir=work, keep_temp=True ).align( video, jp, en, mode="speech" );
        assert not work.exists();

    def test_no_speech_detected( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        media_probe.detect_silence.return_value = "silence_start: 0\n";
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );

        with pytest.raises( EmptyAlignmentWindowError ):
            aligner.align( video, jp, en, mode="speech" );


class TestWindowAndInputs:
    """Sampling window and input validation."""

    def test_track_outside_window( self, episode_files, media_probe, config, tmp_path ):
        video, _, en = episode_files;
        late = write_srt( tmp_path / "late.srt", [ ( 9000, 10000 ) ] );
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );

        with pytest.raises( EmptyAlignmentWindowError ) as excinfo:
            aligner.align( video, late, en );
        assert excinfo.value.track == "JP";
        assert excinfo.value.window_ms == 8000;

    def test_unknown_duration_uses_requested_window( self, episode_files, media_probe, config, tmp_path ):
        video, jp, en = episode_files;
        media_probe.get_duration.return_value = 0.0;
        aligner = EpisodeAligner( config=config, media_probe=media_probe, work_dir=tmp_path / "work" );
        assert aligner.align( video, jp, en ).sample_sec == 8.0;

    def test_unknown_mode( self, episode_files, media_probe, config ):
        video, jp, en = episode_files;
        with pytest.raises( ValueError ):
            EpisodeAligner( config=config, media_probe=media_probe ).align( video, jp, en, mode="audio" );


class TestEffectiveWindow:
    """AlignmentConfig.effective_sample_sec."""

    @pytest.mark.parametrize( "duration,expected", [
        ( 1421.7, 1421 ),
        ( 7200.0, 1800.0 ),
        ( 30.0, 120 ),
        ( 0.0, 1800.0 ),
    ] )
    def test_clamping( self, duration, expected ):
        assert AlignmentConfig().effective_sample_sec( duration ) == expected;

    @pytest.mark.parametrize( "duration,expected", [
        ( 0.0, 1800 ),
        ( 1500.9, 1500 ),
        ( 5000.0, 1800.7 ),
    ] )
    def test_fractional_requested_window( self, duration, expected ):
        window = AlignmentConfig( sample_sec=1800.7 ).effective_sample_sec( duration );
        assert window == expected;


if __name__ == '__main__':
    pytest.main( [ __file__ ] );
