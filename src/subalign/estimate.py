"""
Per-track offset estimation: search + confidence verdict.
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .config import BoundaryScoringParams, SearchParams
from .confidence import ConfidenceClassifier
from .intervals import Interval
from .scoring import OffsetScorer, ReferenceOverlapScorer, ScoreSample, SpeechBoundaryScorer
from .search import OffsetSearchOptimizer


@dataclass( frozen=True )
class EstimationResult:
    """
    Offset estimate for one subtitle track.

    Positive offsets mean the track must be shifted later.
    """

    mode: str;
    offset_ms: int;
    score: float;
    overlap_ratio: float;
    overlap_ms: int;
    sub_dur_ms: int;
    confidence: str;
    score_gap: float;
    ratio_gap: float;
    top: Tuple[ScoreSample, ...];
    boundary_score: Optional[float] = None;

    def to_dict( self ) -> dict:
        data = {
            'mode': self.mode,
            'offsetMs': self.offset_ms,
            'confidence': self.confidence,
            'score': self.score if math.isfinite( self.score ) else None,
            'overlapRatio': self.overlap_ratio,
            'overlapMs': self.overlap_ms,
            'subDurMs': self.sub_dur_ms,
            'scoreGap': self.score_gap if math.isfinite( self.score_gap ) else None,
            'ratioGap': self.ratio_gap,
            'top': [ sample.to_dict() for sample in self.top ],
        };
        if self.boundary_score is not None:
            data['boundaryScore'] = self.boundary_score;
        return data;


def estimate_offset( scorer: OffsetScorer, params: SearchParams = None, classifier: ConfidenceClassifier = None ) -> EstimationResult:
    """Run the coarse-to-fine search with ``scorer`` and classify the winner."""
    classifier = classifier or ConfidenceClassifier();
    outcome = OffsetSearchOptimizer( scorer, params ).search();
    best = outcome.best;

    metric = scorer.confidence_metric( best );
    confidence = classifier.classify( scorer.mode, metric, outcome.ratio_gap );

    return EstimationResult(
        mode=scorer.mode,
        offset_ms=best.offset_ms,
        score=best.score,
        overlap_ratio=best.overlap_ratio,
        overlap_ms=best.overlap_ms,
        sub_dur_ms=best.sub_dur_ms,
        confidence=confidence,
        score_gap=outcome.score_gap,
        ratio_gap=outcome.ratio_gap,
        top=outcome.top,
        boundary_score=best.boundary_score
    );


def estimate_offset_to_reference(
    sub_intervals: Sequence[Interval],
    ref_intervals: Sequence[Interval],
    max_ms: int,
    params: SearchParams = None,
    classifier: ConfidenceClassifier = None
) -> EstimationResult:
    """Estimate a track offset against an embedded reference subtitle track."""
    scorer = ReferenceOverlapScorer( sub_intervals, ref_intervals, max_ms );
    return estimate_offset( scorer, params, classifier );


def estimate_offset_to_speech(
    sub_intervals: Sequence[Interval],
    speech_intervals: Sequence[Interval],
    max_ms: int,
    params: SearchParams = None,
    boundary_params: BoundaryScoringParams = None,
    classifier: ConfidenceClassifier = None
) -> EstimationResult:
    """Estimate a track offset against detected speech intervals."""
    scorer = SpeechBoundaryScorer( sub_intervals, speech_intervals, max_ms, boundary_params );
    return estimate_offset( scorer, params, classifier );
