"""
Subtitle parsing into timed cues, and offset application.

SRT files are read with pysrt, ASS/SSA files with pysubs2. Text is cleaned
of markup but otherwise opaque: alignment only looks at timing.
"""
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Sequence

import pysrt
import pysubs2

from .errors import MalformedTimestampError
from .logging import get_logger


SRT_EXTENSIONS = ( ".srt", );
ASS_EXTENSIONS = ( ".ass", ".ssa" );
SUPPORTED_EXTENSIONS = SRT_EXTENSIONS + ASS_EXTENSIONS;


@dataclass( frozen=True )
class SubtitleCue:
    """A single timed subtitle line."""

    start_ms: int;
    end_ms: int;
    text: str;

    def __repr__( self ):
        return f"SubtitleCue(start={self.start_ms}ms, end={self.end_ms}ms, text='{self.text[:30]}')";


def clean_subtitle_text( text: str ) -> str:
    """
    Strip ASS override blocks and HTML tags, then join non-empty lines with a space.
    """
    if not text:
        return "";

    text = text.replace( "\\N", "\n" ).replace( "\\n", "\n" );
    text = re.sub( r'\{[^}]*\}', '', text );
    text = re.sub( r'<[^>]*>', '', text );

    lines = [ line.strip() for line in re.split( r'\r?\n', text ) ];
    return " ".join( line for line in lines if line );


class SubtitleParser:
    """
    Parse .srt / .ass / .ssa files into SubtitleCue lists.

    Cues whose cleaned text is empty are dropped. Any timing the underlying
    library cannot read is reported as MalformedTimestampError.
    """

    def __init__( self ):
        self.logger = get_logger();

    def validate_subtitle_file( self, subtitle_file: Path ):
        if not subtitle_file.exists():
            raise FileNotFoundError( f"Subtitle file not found: {subtitle_file}" );
        if subtitle_file.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise ValueError( f"Unsupported subtitle extension: {subtitle_file.suffix}" );

    def parse_srt( self, subtitle_file: Path ) -> List[SubtitleCue]:
        try:
            items = pysrt.open( str( subtitle_file ), encoding="utf-8-sig", error_handling=pysrt.ERROR_RAISE );
        except pysrt.Error as e:
            raise MalformedTimestampError( subtitle_file, str( e ) ) from e;

        cues = [];
        for item in items:
            text = clean_subtitle_text( item.text );
            if not text:
                continue;
            cues.append( SubtitleCue( item.start.ordinal, item.end.ordinal, text ) );
        return cues;

    def parse_ass( self, subtitle_file: Path ) -> List[SubtitleCue]:
        try:
            subs = pysubs2.load( str( subtitle_file ), encoding="utf-8-sig" );
        except Exception as e:
            raise MalformedTimestampError( subtitle_file, str( e ) ) from e;

        cues = [];
        for line in subs:
            if line.is_comment:
                continue;
            text = clean_subtitle_text( line.text );
            if not text:
                continue;
            cues.append( SubtitleCue( int( line.start ), int( line.end ), text ) );
        return cues;

    def parse_subtitle_file( self, subtitle_file: Path ) -> List[SubtitleCue]:
        """
        Parse a subtitle file based on its extension.

        Args:
            subtitle_file: Path to an .srt, .ass or .ssa file

        Returns:
            Cues in file order
        """
        subtitle_file = Path( subtitle_file );
        self.validate_subtitle_file( subtitle_file );

        if subtitle_file.suffix.lower() in SRT_EXTENSIONS:
            cues = self.parse_srt( subtitle_file );
        else:
            cues = self.parse_ass( subtitle_file );

        self.logger.debug( f"Parsed {len( cues )} cues from {subtitle_file.name}" );
        return cues;


def apply_offset_to_cues( cues: Sequence[SubtitleCue], offset_ms: int ) -> List[SubtitleCue]:
    """Return new cues shifted by ``offset_ms``, clamped so nothing starts before 0."""
    if not offset_ms:
        return list( cues );
    return [
        replace( cue, start_ms=max( 0, cue.start_ms + offset_ms ), end_ms=max( 1, cue.end_ms + offset_ms ) )
        for cue in cues
    ];


def shifted_output_path( subtitle_file: Path, out_dir: Path = None ) -> Path:
    subtitle_file = Path( subtitle_file );
    parent = Path( out_dir ) if out_dir else subtitle_file.parent;
    return parent / f"{subtitle_file.stem}.aligned{subtitle_file.suffix}";


def write_shifted_subtitles( subtitle_file: Path, offset_ms: int, output_file: Path ) -> Path:
    """
    Write a copy of ``subtitle_file`` with every event shifted by ``offset_ms``.

    Formatting is preserved; shifted times are clamped at 0.
    """
    logger = get_logger();
    subs = pysubs2.load( str( subtitle_file ), encoding="utf-8-sig" );

    for line in subs:
        line.start = max( 0, line.start + offset_ms );
        line.end = max( line.start, line.end + offset_ms );

    output_file = Path( output_file );
    output_file.parent.mkdir( parents=True, exist_ok=True );
    subs.save( str( output_file ), encoding="utf-8" );
    logger.info( f"Saved shifted subtitles ({offset_ms:+d}ms): {output_file}" );
    return output_file;
