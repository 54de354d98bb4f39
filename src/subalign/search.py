"""
Coarse-to-fine offset search driven by an injected scorer.
"""
from dataclasses import dataclass
from typing import Callable, List, Tuple

from .config import SearchParams
from .logging import get_logger
from .scoring import ScoreSample


def score_gap( a: float, b: float ) -> float:
    """Difference a - b; equal values (including two -inf) give 0.0."""
    if a == b:
        return 0.0;
    return a - b;


@dataclass( frozen=True )
class SearchOutcome:
    """Best candidate, runner-up and ranked top candidates of one search."""

    best: ScoreSample;
    second: ScoreSample;
    top: Tuple[ScoreSample, ...];
    coarse_evaluations: int;
    fine_evaluations: int;

    @property
    def score_gap( self ) -> float:
        return score_gap( self.best.score, self.second.score );

    @property
    def ratio_gap( self ) -> float:
        return score_gap( self.best.overlap_ratio, self.second.overlap_ratio );


class OffsetSearchOptimizer:
    """
    Local-refinement search over a 1-D offset range.

    1. Coarse pass at ``coarse_step_ms`` over [min, max] inclusive.
    2. Fine pass at ``fine_step_ms`` within one coarse step of the coarse best.
    3. Candidates of the fine pass (or the coarse pass if the fine pass
       produced nothing) are ranked by descending score.

    Ties keep the earliest offset. This is not a global optimizer: a coarse
    local optimum can hide the true offset, which the confidence verdict
    is there to flag.
    """

    def __init__( self, scorer: Callable[[int], ScoreSample], params: SearchParams = None ):
        self.scorer = scorer;
        self.params = params or SearchParams();
        self.logger = get_logger();

    def _sweep( self, start_ms: int, end_ms: int, step_ms: int ) -> List[ScoreSample]:
        samples = [];
        offset = start_ms;
        while offset <= end_ms:
            samples.append( self.scorer( offset ) );
            offset += step_ms;
        return samples;

    @staticmethod
    def _pick_best( samples: List[ScoreSample], best: ScoreSample = None ) -> ScoreSample:
        for sample in samples:
            if best is None or sample.score > best.score:
                best = sample;
        return best;

    @staticmethod
    def _rank( samples: List[ScoreSample] ) -> List[ScoreSample]:
        return sorted( samples, key=lambda s: s.score, reverse=True );

    def search( self ) -> SearchOutcome:
        p = self.params;

        coarse = self._sweep( p.min_offset_ms, p.max_offset_ms, p.coarse_step_ms );
        best = self._pick_best( coarse );
        self.logger.debug( f"Coarse pass: {len( coarse )} offsets, best {best.offset_ms}ms (score={best.score:.4f})" );

        fine_start = max( p.min_offset_ms, best.offset_ms - p.coarse_step_ms );
        fine_end = min( p.max_offset_ms, best.offset_ms + p.coarse_step_ms );
        fine = self._sweep( fine_start, fine_end, p.fine_step_ms );
        best = self._pick_best( fine, best );
        self.logger.debug( f"Fine pass: {len( fine )} offsets in [{fine_start}, {fine_end}], best {best.offset_ms}ms (score={best.score:.4f})" );

        pool = self._rank( fine ) if fine else self._rank( coarse );
        second = pool[1] if len( pool ) > 1 else pool[0];

        return SearchOutcome(
            best=best,
            second=second,
            top=tuple( pool[:p.top_n] ),
            coarse_evaluations=len( coarse ),
            fine_evaluations=len( fine )
        );
