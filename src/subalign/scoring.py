"""
Offset scoring strategies.

A scorer evaluates one candidate offset: it shifts the subtitle intervals,
clips them to the sampling window and measures how well they line up with
a reference basis. Scorers are interchangeable inside the search optimizer.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import BoundaryScoringParams
from .intervals import Interval, boundary_closeness, overlap_duration, shift_intervals, sum_duration


@dataclass( frozen=True )
class ScoreSample:
    """One scorer evaluation at one offset."""

    offset_ms: int;
    score: float;                           # -inf when the shifted track is empty
    overlap_ratio: float;
    overlap_ms: int;
    sub_dur_ms: int;
    boundary_score: Optional[float] = None; # speech-boundary strategy only

    @property
    def is_degenerate( self ) -> bool:
        return self.sub_dur_ms <= 0;

    def to_dict( self ) -> dict:
        data = {
            'offsetMs': self.offset_ms,
            'score': self.score if math.isfinite( self.score ) else None,
            'overlapRatio': self.overlap_ratio,
            'overlapMs': self.overlap_ms,
            'subDurMs': self.sub_dur_ms,
        };
        if self.boundary_score is not None:
            data['boundaryScore'] = self.boundary_score;
        return data;


class OffsetScorer( ABC ):
    """Abstract base class for offset scoring strategies."""

    mode = "";

    def __init__( self, sub_intervals: Sequence[Interval], max_ms: int ):
        self.sub_intervals = list( sub_intervals );
        self.max_ms = max_ms;

    @abstractmethod
    def score( self, offset_ms: int ) -> ScoreSample:
        """Score the subtitle track shifted by ``offset_ms``."""
        pass;

    def __call__( self, offset_ms: int ) -> ScoreSample:
        return self.score( offset_ms );

    def confidence_metric( self, sample: ScoreSample ) -> Optional[float]:
        """Value graded against the confidence thresholds for this scorer's mode."""
        return sample.overlap_ratio;


class ReferenceOverlapScorer( OffsetScorer ):
    """
    Fraction of shifted subtitle time covered by a trusted reference track.

    Primary strategy when the video carries a full-dialogue subtitle stream.
    """

    mode = "reference";

    def __init__( self, sub_intervals: Sequence[Interval], ref_intervals: Sequence[Interval], max_ms: int ):
        super().__init__( sub_intervals, max_ms );
        self.ref_intervals = list( ref_intervals );

    def score( self, offset_ms: int ) -> ScoreSample:
        shifted = shift_intervals( self.sub_intervals, offset_ms, self.max_ms );
        sub_dur = sum_duration( shifted );
        if sub_dur <= 0:
            return ScoreSample( offset_ms, -math.inf, 0.0, 0, 0 );

        overlap = overlap_duration( shifted, self.ref_intervals );
        ratio = overlap / sub_dur;
        return ScoreSample( offset_ms, ratio, ratio, overlap, sub_dur );


class SpeechBoundaryScorer( OffsetScorer ):
    """
    Blend of cue-boundary proximity to speech onsets/offsets and speech overlap.

    In continuous dialogue the overlap ratio is nearly flat across a wide
    offset range, so the boundary term carries most of the weight.
    """

    mode = "speech";

    def __init__(
        self,
        sub_intervals: Sequence[Interval],
        speech_intervals: Sequence[Interval],
        max_ms: int,
        params: BoundaryScoringParams = None
    ):
        super().__init__( sub_intervals, max_ms );
        self.speech_intervals = list( speech_intervals );
        self.params = params or BoundaryScoringParams();

        # Window edges are not real speech boundaries
        self.speech_starts = self._inner_points( [ x.start_ms for x in self.speech_intervals ] );
        self.speech_ends = self._inner_points( [ x.end_ms for x in self.speech_intervals ] );

    def _inner_points( self, points: List[int] ) -> List[int]:
        return sorted( p for p in points if 0 < p < self.max_ms );

    def score( self, offset_ms: int ) -> ScoreSample:
        shifted = shift_intervals( self.sub_intervals, offset_ms, self.max_ms );
        sub_dur = sum_duration( shifted );
        if sub_dur <= 0:
            return ScoreSample( offset_ms, -math.inf, 0.0, 0, 0, boundary_score=0.0 );

        overlap = overlap_duration( shifted, self.speech_intervals );
        ratio = overlap / sub_dur;

        start_close = boundary_closeness( [ x.start_ms for x in shifted ], self.speech_starts, self.params.scale_ms );
        end_close = boundary_closeness( [ x.end_ms for x in shifted ], self.speech_ends, self.params.scale_ms );
        boundary = ( start_close + end_close ) / 2;

        score = boundary * self.params.boundary_weight + ratio * self.params.overlap_weight;
        return ScoreSample( offset_ms, score, ratio, overlap, sub_dur, boundary_score=boundary );

    def confidence_metric( self, sample: ScoreSample ) -> Optional[float]:
        return sample.boundary_score;
