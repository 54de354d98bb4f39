"""
Fatal error types raised by the alignment pipeline.

Per-offset degenerate scores are not errors; these cover whole-track
conditions where alignment cannot proceed at all.
"""


class AlignmentError( RuntimeError ):
    """Base class for fatal alignment failures."""


class NoReferenceStreamError( AlignmentError ):
    """The video carries no embedded subtitle stream to use as ground truth."""


class EmptyAlignmentWindowError( AlignmentError ):
    """A reference or subtitle track has zero lines inside the sampling window."""

    def __init__( self, track: str, window_ms: int ):
        self.track = track;
        self.window_ms = window_ms;
        super().__init__( f"{track} parsed to zero lines in sample window (0ms -> {window_ms}ms)" );


class MalformedTimestampError( AlignmentError ):
    """A subtitle file could not be parsed into timed cues."""

    def __init__( self, path, detail: str ):
        self.path = path;
        self.detail = detail;
        super().__init__( f"Bad subtitle timing in {path}: {detail}" );


class MediaProbeError( AlignmentError ):
    """An ffmpeg/ffprobe invocation failed."""
