"""
Tunable parameters for offset search, scoring, confidence and silence detection.

The numeric defaults are empirically chosen values calibrated on anime
episodes with a full-dialogue embedded track. Every one of them can be
overridden from the CLI.
"""
from dataclasses import dataclass, field


@dataclass( frozen=True )
class SearchParams:
    """Offset range and resolutions for the coarse-to-fine search."""

    min_offset_ms: int = -12000;
    max_offset_ms: int = 12000;
    coarse_step_ms: int = 100;
    fine_step_ms: int = 20;
    top_n: int = 5;

    def __post_init__( self ):
        if self.max_offset_ms <= self.min_offset_ms:
            raise ValueError( "max_offset_ms must be greater than min_offset_ms" );
        if self.coarse_step_ms <= 0 or self.fine_step_ms <= 0:
            raise ValueError( "coarse_step_ms and fine_step_ms must be > 0" );
        if self.top_n < 1:
            raise ValueError( "top_n must be at least 1" );


@dataclass( frozen=True )
class BoundaryScoringParams:
    """Weights for the speech-boundary scorer."""

    scale_ms: float = 320.0;        # exp decay scale for boundary distance
    boundary_weight: float = 0.85;
    overlap_weight: float = 0.15;


@dataclass( frozen=True )
class ConfidenceThresholds:
    """
    Minimum metric and minimum ratio gap for each confidence tier.

    The metric is the overlap ratio in reference mode and the boundary
    score in speech mode.
    """

    high_min: float;
    high_gap: float;
    medium_min: float;
    medium_gap: float;


REFERENCE_THRESHOLDS = ConfidenceThresholds( high_min=0.70, high_gap=0.01, medium_min=0.55, medium_gap=0.006 );
SPEECH_THRESHOLDS = ConfidenceThresholds( high_min=0.55, high_gap=0.01, medium_min=0.45, medium_gap=0.006 );


@dataclass( frozen=True )
class SilenceParams:
    """ffmpeg silencedetect settings."""

    noise: str = "-30dB";
    min_silence_sec: float = 0.25;
    audio_stream: str = "0:a:0";


@dataclass( frozen=True )
class AlignmentConfig:
    """Everything one episode alignment run needs besides its input files."""

    search: SearchParams = field( default_factory=SearchParams );
    boundary: BoundaryScoringParams = field( default_factory=BoundaryScoringParams );
    reference_thresholds: ConfidenceThresholds = REFERENCE_THRESHOLDS;
    speech_thresholds: ConfidenceThresholds = SPEECH_THRESHOLDS;
    silence: SilenceParams = field( default_factory=SilenceParams );
    sample_sec: float = 1800.0;
    min_sample_sec: float = 120.0;

    def __post_init__( self ):
        if self.sample_sec <= 0:
            raise ValueError( "sample_sec must be > 0" );

    def effective_sample_sec( self, video_duration_sec: float ) -> float:
        """
        Clamp the sampling window to the video length.

        Unknown durations (0) fall back to the requested window; very short
        videos still get at least ``min_sample_sec``.
        """
        known = video_duration_sec if video_duration_sec and video_duration_sec > 0 else self.sample_sec;
        return min( self.sample_sec, max( self.min_sample_sec, int( known ) ) );
