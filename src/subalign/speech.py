"""
Speech interval extraction from an ffmpeg silencedetect log.
"""
import re
from typing import List

from .intervals import Interval, complement_intervals, merge_intervals


SILENCE_START_RE = re.compile( r'silence_start:\s*([0-9.]+)' );
SILENCE_END_RE = re.compile( r'silence_end:\s*([0-9.]+)' );


def _seconds_to_ms( value: str ) -> int:
    return max( 0, int( round( float( value ) * 1000 ) ) );


def parse_silence_intervals( log_text: str, max_ms: int ) -> List[Interval]:
    """
    Parse silence_start / silence_end marker pairs into merged silence intervals.

    Args:
        log_text: Raw silencedetect output (stdout and stderr concatenated)
        max_ms: Sampling window length; intervals are clamped to [0, max_ms]

    Returns:
        Sorted, merged silence intervals

    A ``silence_end`` with no open start counts as silence from 0; a start
    still open at the end of the log is closed at ``max_ms``.
    """
    silences = [];
    open_start = None;

    for line in ( log_text or "" ).splitlines():
        start_match = SILENCE_START_RE.search( line );
        if start_match:
            open_start = _seconds_to_ms( start_match.group( 1 ) );
            continue;

        end_match = SILENCE_END_RE.search( line );
        if end_match:
            end_ms = min( max_ms, _seconds_to_ms( end_match.group( 1 ) ) );
            if open_start is None:
                if end_ms > 0:
                    silences.append( Interval( 0, end_ms ) );
            elif end_ms > open_start:
                silences.append( Interval( open_start, end_ms ) );
            open_start = None;

    if open_start is not None and open_start < max_ms:
        silences.append( Interval( open_start, max_ms ) );

    return merge_intervals( silences );


def speech_intervals_from_log( log_text: str, max_ms: int ) -> List[Interval]:
    """Speech = complement of merged silence inside [0, max_ms)."""
    return complement_intervals( parse_silence_intervals( log_text, max_ms ), max_ms );
