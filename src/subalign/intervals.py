"""
Interval algebra over half-open millisecond spans.

All functions take any objects exposing ``start_ms`` / ``end_ms`` (intervals
or subtitle cues) and return fresh ``Interval`` lists. A list is normalized
when it is sorted by start and no two entries overlap or touch.
"""
import bisect
import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence


@dataclass( frozen=True, order=True )
class Interval:
    """A half-open time span [start_ms, end_ms)."""

    start_ms: int;
    end_ms: int;

    def __post_init__( self ):
        if self.end_ms <= self.start_ms:
            raise ValueError( f"Interval end must be after start: [{self.start_ms}, {self.end_ms})" );

    @property
    def duration_ms( self ) -> int:
        return self.end_ms - self.start_ms;


def merge_intervals( intervals: Iterable ) -> List[Interval]:
    """
    Sort and coalesce intervals into a normalized list.

    Empty or inverted spans are dropped. An interval starting exactly where
    the running one ends is coalesced into it.
    """
    spans = sorted(
        ( item.start_ms, item.end_ms ) for item in intervals
        if item.end_ms > item.start_ms
    );
    if not spans:
        return [];

    merged = [];
    cur_start, cur_end = spans[0];
    for start, end in spans[1:]:
        if start <= cur_end:
            cur_end = max( cur_end, end );
        else:
            merged.append( Interval( cur_start, cur_end ) );
            cur_start, cur_end = start, end;
    merged.append( Interval( cur_start, cur_end ) );
    return merged;


def complement_intervals( intervals: Sequence, max_ms: int ) -> List[Interval]:
    """
    Return the gaps of a sorted, merged interval list inside [0, max_ms).
    """
    gaps = [];
    cursor = 0;
    for item in intervals:
        if item.start_ms > cursor:
            gaps.append( ( cursor, item.start_ms ) );
        cursor = max( cursor, item.end_ms );
    if cursor < max_ms:
        gaps.append( ( cursor, max_ms ) );
    return [ Interval( start, end ) for start, end in gaps if end > start ];


def sum_duration( intervals: Iterable ) -> int:
    return sum( item.end_ms - item.start_ms for item in intervals );


def overlap_duration( a: Sequence, b: Sequence ) -> int:
    """
    Total intersection length of two normalized interval lists.

    Two-pointer sweep, O(len(a) + len(b)).
    """
    i = 0;
    j = 0;
    total = 0;
    while i < len( a ) and j < len( b ):
        start = max( a[i].start_ms, b[j].start_ms );
        end = min( a[i].end_ms, b[j].end_ms );
        if end > start:
            total += end - start;
        if a[i].end_ms < b[j].end_ms:
            i += 1;
        else:
            j += 1;
    return total;


def intervals_within( items: Iterable, max_ms: int ) -> List[Interval]:
    """Clip items into [0, max_ms], drop empty results and merge."""
    clipped = [];
    for item in items:
        start = max( 0, min( max_ms, item.start_ms ) );
        end = max( 0, min( max_ms, item.end_ms ) );
        if end > start:
            clipped.append( Interval( start, end ) );
    return merge_intervals( clipped );


def shift_intervals( intervals: Iterable, offset_ms: int, max_ms: int ) -> List[Interval]:
    """Shift every interval by ``offset_ms`` then clip to the window."""
    shifted = [
        Interval( item.start_ms + offset_ms, item.end_ms + offset_ms )
        for item in intervals
        if item.end_ms > item.start_ms
    ];
    return intervals_within( shifted, max_ms );


def nearest_distance_ms( sorted_points: Sequence[int], value: float ) -> float:
    """
    Distance from ``value`` to the closest point of a sorted sequence.

    Returns ``math.inf`` for an empty sequence.
    """
    if not sorted_points:
        return math.inf;
    pos = bisect.bisect_left( sorted_points, value );
    after = abs( sorted_points[pos] - value ) if pos < len( sorted_points ) else math.inf;
    before = abs( sorted_points[pos - 1] - value ) if pos > 0 else math.inf;
    return min( after, before );


def boundary_closeness( points: Sequence[int], refs: Sequence[int], scale_ms: float ) -> float:
    """
    Mean proximity of ``points`` to the sorted reference points.

    Each point contributes exp(-distance / scale): 1.0 on an exact hit,
    decaying smoothly toward 0. Empty inputs score 0.
    """
    if not points or not refs:
        return 0.0;
    scale = max( 1.0, scale_ms );
    total = 0.0;
    for point in points:
        total += math.exp( -nearest_distance_ms( refs, point ) / scale );
    return total / len( points );
