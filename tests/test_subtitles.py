"""
Test cases for subtitle parsing and shifted export.
"""
import pytest
from pathlib import Path
import sys
from unittest.mock import patch

import pysrt
import pysubs2

# Add src directory to path for testing
sys.path.insert( 0, str( Path( __file__ ).parent.parent / "src" ) );

from subalign.errors import MalformedTimestampError
from subalign.subtitles import (
    SubtitleCue,
    SubtitleParser,
    apply_offset_to_cues,
    clean_subtitle_text,
    shifted_output_path,
    write_shifted_subtitles,
)


SRT_CONTENT = """1
00:00:01,000 --> 00:00:03,000
<i>Hello</i> there

2
00:00:05,000 --> 00:00:07,500
General Kenobi

3
00:00:08,000 --> 00:00:09,000
<b></b>
""";

ASS_CONTENT = """[Script Info]
ScriptType: v4.00+
PlayResX: 1920
PlayResY: 1080

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: Default,Arial,48,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,0,0,0,0,100,100,0,0,1,2,0,2,10,10,10,1

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
Dialogue: 0,0:00:01.00,0:00:03.00,Default,,0,0,0,,{\\i1}Hello{\\i0}\\Nthere
Comment: 0,0:00:04.00,0:00:05.00,Default,,0,0,0,,translator note
Dialogue: 0,0:00:05.50,0:00:07.25,Default,,0,0,0,,Second line
Dialogue: 0,0:00:08.00,0:00:09.00,Default,,0,0,0,,{\\pos(10,10)}
""";


@pytest.fixture
def srt_file( tmp_path ):
    path = tmp_path / "episode.srt";
    path.write_text( SRT_CONTENT, encoding="utf-8" );
    return path;


@pytest.fixture
def ass_file( tmp_path ):
    path = tmp_path / "episode.ass";
    path.write_text( ASS_CONTENT, encoding="utf-8" );
    return path;


class TestCleanText:
    """Test markup stripping."""

    @pytest.mark.parametrize( "raw,expected", [
        ( "{\\an8}Top line", "Top line" ),
        ( "<i>Italic</i> text", "Italic text" ),
        ( "First\\NSecond", "First Second" ),
        ( "  one \n\n two  ", "one two" ),
        ( "{\\pos(1,1)}", "" ),
        ( "", "" ),
    ] )
    def test_clean( self, raw, expected ):
        assert clean_subtitle_text( raw ) == expected;


class TestSubtitleParser:
    """Test SRT and ASS parsing."""

    def test_parse_srt( self, srt_file ):
        cues = SubtitleParser().parse_subtitle_file( srt_file );

        assert cues == [
            SubtitleCue( 1000, 3000, "Hello there" ),
            SubtitleCue( 5000, 7500, "General Kenobi" ),
        ];

    def test_parse_ass_skips_comments_and_empty_lines( self, ass_file ):
        cues = SubtitleParser().parse_subtitle_file( ass_file );

        assert [ ( c.start_ms, c.end_ms ) for c in cues ] == [ ( 1000, 3000 ), ( 5500, 7250 ) ];
        assert cues[0].text == "Hello there";

    def test_srt_with_bom( self, tmp_path ):
        path = tmp_path / "bom.srt";
        path.write_bytes( b"\xef\xbb\xbf" + SRT_CONTENT.encode( "utf-8" ) );
        cues = SubtitleParser().parse_subtitle_file( path );
        assert cues[0].start_ms == 1000;

    def test_missing_file( self, tmp_path ):
        with pytest.raises( FileNotFoundError ):
            SubtitleParser().parse_subtitle_file( tmp_path / "missing.srt" );

    def test_unsupported_extension( self, tmp_path ):
        path = tmp_path / "episode.vtt";
        path.write_text( "WEBVTT\n", encoding="utf-8" );
        with pytest.raises( ValueError, match="Unsupported" ):
            SubtitleParser().parse_subtitle_file( path );

    def test_malformed_srt( self, srt_file ):
        with patch( 'subalign.subtitles.pysrt.open', side_effect=pysrt.InvalidItem( "bad timing" ) ):
            with pytest.raises( MalformedTimestampError ) as excinfo:
                SubtitleParser().parse_subtitle_file( srt_file );
        assert excinfo.value.path == srt_file;
        assert "bad timing" in str( excinfo.value );

    def test_malformed_ass( self, ass_file ):
        with patch( 'subalign.subtitles.pysubs2.load', side_effect=ValueError( "broken event" ) ):
            with pytest.raises( MalformedTimestampError ):
                SubtitleParser().parse_subtitle_file( ass_file );


class TestApplyOffset:
    """Test cue shifting."""

    CUES = [ SubtitleCue( 100, 900, "a" ), SubtitleCue( 2000, 3000, "b" ) ];

    def test_positive_offset( self ):
        shifted = apply_offset_to_cues( self.CUES, 500 );
        assert [ ( c.start_ms, c.end_ms ) for c in shifted ] == [ ( 600, 1400 ), ( 2500, 3500 ) ];

    def test_negative_offset_clamps( self ):
        shifted = apply_offset_to_cues( self.CUES, -1000 );
        assert [ ( c.start_ms, c.end_ms ) for c in shifted ] == [ ( 0, 1 ), ( 1000, 2000 ) ];
        assert shifted[1].text == "b";

    def test_zero_offset_copies( self ):
        shifted = apply_offset_to_cues( self.CUES, 0 );
        assert shifted == self.CUES;
        assert shifted is not self.CUES;


class TestShiftedExport:
    """Test writing shifted subtitle files."""

    def test_output_path( self, tmp_path ):
        assert shifted_output_path( Path( "/subs/ep.ass" ) ) == Path( "/subs/ep.aligned.ass" );
        assert shifted_output_path( Path( "/subs/ep.srt" ), tmp_path ) == tmp_path / "ep.aligned.srt";

    def test_write_shifted_srt( self, srt_file, tmp_path ):
        output = write_shifted_subtitles( srt_file, 1500, tmp_path / "out" / "episode.aligned.srt" );

        subs = pysubs2.load( str( output ) );
        assert output.exists();
        assert ( subs[0].start, subs[0].end ) == ( 2500, 4500 );

    def test_write_shifted_ass_clamps( self, ass_file, tmp_path ):
        output = write_shifted_subtitles( ass_file, -2000, tmp_path / "episode.aligned.ass" );

        subs = pysubs2.load( str( output ) );
        assert subs[0].start == 0;
        assert subs[0].end == 1000;
        assert any( line.is_comment for line in subs );


if __name__ == '__main__':
    pytest.main( [ __file__ ] );
