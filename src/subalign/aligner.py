"""
Episode alignment controller: gathers inputs and estimates both track offsets.
"""
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .config import AlignmentConfig
from .confidence import ConfidenceClassifier
from .errors import EmptyAlignmentWindowError, NoReferenceStreamError
from .estimate import EstimationResult, estimate_offset_to_reference, estimate_offset_to_speech
from .intervals import Interval, intervals_within
from .logging import get_logger
from .media import MediaProbe
from .speech import speech_intervals_from_log
from .streams import ReferenceStream, ReferenceStreamSelector
from .subtitles import SubtitleCue, SubtitleParser


MODES = ( "reference", "speech" );


@dataclass( frozen=True )
class EpisodeAlignment:
    """Result of aligning the JP and EN tracks of one episode."""

    episode: Optional[str];
    mode: str;
    sample_sec: float;
    video_file: Path;
    jp_file: Path;
    en_file: Path;
    jp: EstimationResult;
    en: EstimationResult;
    reference: Optional[ReferenceStream] = None;
    basis_intervals: int = 0;

    def to_dict( self ) -> dict:
        data = {
            'generatedAt': datetime.now( timezone.utc ).isoformat(),
            'episode': self.episode,
            'mode': self.mode,
            'sampleSec': self.sample_sec,
            'window': { 'startSec': 0, 'endSec': self.sample_sec },
            'videoFile': str( Path( self.video_file ).resolve() ),
            'jpSubFile': str( Path( self.jp_file ).resolve() ),
            'enSubFile': str( Path( self.en_file ).resolve() ),
            'basisIntervals': self.basis_intervals,
            'jp': self.jp.to_dict(),
            'en': self.en.to_dict(),
        };
        if self.reference is not None:
            data['reference'] = {
                'streamIndex': self.reference.index,
                'language': self.reference.language,
                'title': self.reference.title,
                'codecName': self.reference.codec_name,
            };
        return data;


class EpisodeAligner:
    """
    Orchestrates one episode:
    1. Sampling window from the video duration
    2. JP/EN subtitle parsing and clipping
    3. Ground truth: embedded reference track, or speech from silencedetect
    4. Offset estimation per track
    """

    def __init__(
        self,
        config: AlignmentConfig = None,
        media_probe: MediaProbe = None,
        parser: SubtitleParser = None,
        selector: ReferenceStreamSelector = None,
        work_dir: Path = None,
        keep_temp: bool = False,
        debug: bool = False
    ):
        self.config = config or AlignmentConfig();
        self.media_probe = media_probe or MediaProbe( debug=debug );
        self.parser = parser or SubtitleParser();
        self.selector = selector or ReferenceStreamSelector();
        self.work_dir = Path( work_dir ) if work_dir else None;
        self.keep_temp = keep_temp;
        self.logger = get_logger( debug=debug );
        self.classifier = ConfidenceClassifier(
            reference=self.config.reference_thresholds,
            speech=self.config.speech_thresholds
        );

    def _track_intervals( self, name: str, cues: List[SubtitleCue], max_ms: int ) -> List[Interval]:
        intervals = intervals_within( cues, max_ms );
        if not intervals:
            raise EmptyAlignmentWindowError( name, max_ms );
        self.logger.info( f"{name}: {len( cues )} cues, {len( intervals )} merged intervals in window" );
        return intervals;

    def _make_work_dir( self, episode: Optional[str] ) -> Path:
        prefix = f".align_tmp_{episode or 'episode'}_";
        if self.work_dir:
            self.work_dir.mkdir( parents=True, exist_ok=True );
            return Path( tempfile.mkdtemp( prefix=prefix, dir=str( self.work_dir ) ) );
        return Path( tempfile.mkdtemp( prefix=prefix ) );

    def reference_intervals( self, video_file: Path, max_ms: int, work_dir: Path ):
        """Select, extract and parse the embedded reference subtitle track."""
        streams = self.media_probe.list_subtitle_streams( video_file );
        reference = self.selector.select( streams );
        if reference is None:
            raise NoReferenceStreamError(
                "No embedded subtitle stream found in video. This alignment method needs an embedded reference track."
            );
        self.logger.info( f"Reference: stream #{reference.index} ({reference.language or '?'}) {reference.title or '(no title)'}" );

        suffix = ".srt" if reference.codec_name in ( "subrip", "srt" ) else ".ass";
        reference_file = work_dir / f"reference{suffix}";
        self.media_probe.extract_subtitle_stream( video_file, reference.index, reference_file );

        cues = self.parser.parse_subtitle_file( reference_file );
        return reference, self._track_intervals( "Reference subtitle stream", cues, max_ms );

    def speech_intervals( self, video_file: Path, sample_sec: float, max_ms: int ) -> List[Interval]:
        """Run silence detection and return speech intervals inside the window."""
        silence = self.config.silence;
        log_text = self.media_probe.detect_silence(
            video_file, silence.audio_stream, sample_sec, silence.noise, silence.min_silence_sec
        );
        speech = speech_intervals_from_log( log_text, max_ms );
        if not speech:
            raise EmptyAlignmentWindowError( "Detected speech", max_ms );
        self.logger.info( f"Speech: {len( speech )} intervals from silencedetect" );
        return speech;

    def align(
        self,
        video_file: Path,
        jp_file: Path,
        en_file: Path,
        episode: str = None,
        mode: str = "reference"
    ) -> EpisodeAlignment:
        """
        Estimate JP and EN offsets for one episode.

        Raises:
            NoReferenceStreamError: reference mode and the video has no subtitle stream
            EmptyAlignmentWindowError: a track or the basis is empty in the window
            MalformedTimestampError: a subtitle file cannot be parsed
        """
        if mode not in MODES:
            raise ValueError( f"Unknown alignment mode: {mode}" );

        self.logger.info( "=== STEP 1: SAMPLING WINDOW ===" );
        duration = self.media_probe.get_duration( video_file );
        sample_sec = self.config.effective_sample_sec( duration );
        max_ms = int( round( sample_sec * 1000 ) );
        self.logger.info( f"Window: 0s -> {sample_sec:g}s" );

        self.logger.info( "=== STEP 2: SUBTITLE PARSING ===" );
        jp_intervals = self._track_intervals( "JP", self.parser.parse_subtitle_file( jp_file ), max_ms );
        en_intervals = self._track_intervals( "EN", self.parser.parse_subtitle_file( en_file ), max_ms );

        reference = None;
        if mode == "reference":
            self.logger.info( "=== STEP 3: REFERENCE TRACK ===" );
            work_dir = self._make_work_dir( episode );
            try:
                reference, basis = self.reference_intervals( video_file, max_ms, work_dir );
            finally:
                if self.keep_temp:
                    self.logger.info( f"Temp kept: {work_dir}" );
                else:
                    shutil.rmtree( work_dir, ignore_errors=True );
        else:
            self.logger.info( "=== STEP 3: SPEECH DETECTION ===" );
            basis = self.speech_intervals( video_file, sample_sec, max_ms );

        self.logger.info( "=== STEP 4: OFFSET ESTIMATION ===" );
        jp = self._estimate( mode, jp_intervals, basis, max_ms );
        en = self._estimate( mode, en_intervals, basis, max_ms );
        for name, result in ( ( "JP", jp ), ( "EN", en ) ):
            self.logger.info(
                f"{name} offset: {result.offset_ms}ms (confidence={result.confidence}, "
                f"overlap={result.overlap_ratio * 100:.1f}%)"
            );
            if result.confidence == "low":
                self.logger.warning( f"{name} offset is low confidence; check it before relying on it" );

        return EpisodeAlignment(
            episode=episode,
            mode=mode,
            sample_sec=sample_sec,
            video_file=Path( video_file ),
            jp_file=Path( jp_file ),
            en_file=Path( en_file ),
            jp=jp,
            en=en,
            reference=reference,
            basis_intervals=len( basis )
        );

    def _estimate( self, mode: str, sub_intervals: List[Interval], basis: List[Interval], max_ms: int ) -> EstimationResult:
        if mode == "reference":
            return estimate_offset_to_reference(
                sub_intervals, basis, max_ms, self.config.search, self.classifier
            );
        return estimate_offset_to_speech(
            sub_intervals, basis, max_ms, self.config.search, self.config.boundary, self.classifier
        );
