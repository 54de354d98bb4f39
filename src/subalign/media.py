"""
Media probing and extraction through ffmpeg/ffprobe.

Gathers the engine's inputs: subtitle stream metadata, an extracted
reference subtitle file, and a silencedetect log for speech mode.
"""
from pathlib import Path
from typing import List

import ffmpeg

from .errors import MediaProbeError
from .logging import get_logger
from .streams import ReferenceStream


def _stderr_text( error: ffmpeg.Error ) -> str:
    stderr = getattr( error, "stderr", None ) or b"";
    return stderr.decode( "utf-8", errors="replace" ).strip();


class MediaProbe:
    """
    ffmpeg-python wrapper for the probes the aligner needs.

    Features:
    - Video duration detection (0.0 when unknown)
    - Subtitle stream listing with normalized metadata
    - Single subtitle stream extraction
    - silencedetect runs over the first N seconds of an audio stream
    """

    def __init__( self, debug: bool = False ):
        self.logger = get_logger( debug=debug );

    def get_duration( self, video_file: Path ) -> float:
        """
        Get video duration in seconds using ffprobe.

        Returns:
            Duration in seconds, or 0.0 if detection fails
        """
        try:
            probe = ffmpeg.probe( str( video_file ) );
            duration = float( probe['format']['duration'] );
        except ffmpeg.Error as e:
            self.logger.warning( f"Could not determine video duration: {_stderr_text( e )}" );
            return 0.0;
        except ( KeyError, ValueError, TypeError ) as e:
            self.logger.warning( f"Could not determine video duration: {e}" );
            return 0.0;

        if duration <= 0:
            return 0.0;
        self.logger.debug( f"Video duration: {duration:.2f} seconds ({duration/60:.1f} minutes)" );
        return duration;

    def list_subtitle_streams( self, video_file: Path ) -> List[ReferenceStream]:
        """List embedded subtitle streams; an unreadable file yields an empty list."""
        try:
            probe = ffmpeg.probe( str( video_file ) );
        except ffmpeg.Error as e:
            self.logger.warning( f"ffprobe failed for {video_file}: {_stderr_text( e )}" );
            return [];

        streams = [];
        for stream in probe.get( 'streams', [] ):
            if stream.get( 'codec_type' ) != 'subtitle':
                continue;
            try:
                index = int( stream['index'] );
            except ( KeyError, ValueError, TypeError ):
                continue;
            tags = stream.get( 'tags' ) or {};
            disposition = stream.get( 'disposition' ) or {};
            streams.append( ReferenceStream(
                index=index,
                codec_name=str( stream.get( 'codec_name' ) or "" ),
                language=str( tags.get( 'language' ) or "" ).lower(),
                title=str( tags.get( 'title' ) or "" ).lower(),
                disposition_default=int( disposition.get( 'default' ) or 0 )
            ) );

        self.logger.debug( f"Found {len( streams )} subtitle stream(s) in {Path( video_file ).name}" );
        return streams;

    def extract_subtitle_stream( self, video_file: Path, stream_index: int, output_file: Path ) -> Path:
        """Extract one subtitle stream (``-map 0:<index>``) into ``output_file``."""
        output_file = Path( output_file );
        output_file.parent.mkdir( parents=True, exist_ok=True );

        stream = ffmpeg.input( str( video_file ) ).output( str( output_file ), map=f"0:{stream_index}" );
        try:
            ffmpeg.run( stream.global_args( '-hide_banner', '-loglevel', 'error' ), overwrite_output=True, quiet=True );
        except ffmpeg.Error as e:
            raise MediaProbeError( f"Failed to extract subtitle stream #{stream_index}: {_stderr_text( e )}" ) from e;

        self.logger.debug( f"Extracted subtitle stream #{stream_index} to {output_file}" );
        return output_file;

    def detect_silence(
        self,
        video_file: Path,
        audio_stream: str,
        sample_sec: float,
        noise: str,
        min_silence_sec: float
    ) -> str:
        """
        Run silencedetect over the first ``sample_sec`` seconds.

        Returns:
            Combined stdout and stderr text containing silence_start/silence_end markers
        """
        stream = (
            ffmpeg
            .input( str( video_file ), t=sample_sec )
            .output( '-', format='null', map=audio_stream, af=f"silencedetect=noise={noise}:d={min_silence_sec}" )
            .global_args( '-hide_banner', '-loglevel', 'info' )
        );
        try:
            out, err = ffmpeg.run( stream, capture_stdout=True, capture_stderr=True );
        except ffmpeg.Error as e:
            raise MediaProbeError( f"Silence detection failed: {_stderr_text( e )}" ) from e;

        text = ( out or b"" ).decode( "utf-8", errors="replace" ) + "\n" + ( err or b"" ).decode( "utf-8", errors="replace" );
        self.logger.debug( f"silencedetect produced {text.count( 'silence_end' )} silence_end marker(s)" );
        return text;
