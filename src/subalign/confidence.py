"""
Confidence verdicts for estimated offsets.
"""
from typing import Dict, Optional

from .config import ConfidenceThresholds, REFERENCE_THRESHOLDS, SPEECH_THRESHOLDS


LOW = "low";
MEDIUM = "medium";
HIGH = "high";


class ConfidenceClassifier:
    """
    Turn a best candidate and its gap to the runner-up into low/medium/high.

    Reference mode grades the overlap ratio; speech mode grades the
    boundary score. Both require a minimum overlap-ratio gap so that a
    flat objective never reads as a confident answer. Other scorer modes
    are graded through ``extra`` thresholds keyed by mode.
    """

    def __init__(
        self,
        reference: ConfidenceThresholds = REFERENCE_THRESHOLDS,
        speech: ConfidenceThresholds = SPEECH_THRESHOLDS,
        extra: Dict[str, ConfidenceThresholds] = None
    ):
        self.thresholds = { "reference": reference, "speech": speech };
        self.thresholds.update( extra or {} );

    def classify( self, mode: str, metric: Optional[float], ratio_gap: float ) -> str:
        """
        Args:
            mode: scorer mode; modes without thresholds always grade low
            metric: the scorer's confidence metric (overlap ratio, boundary score, ...)
            ratio_gap: best overlap ratio minus the runner-up's

        Returns:
            One of "low", "medium", "high"
        """
        if mode not in self.thresholds or metric is None:
            return LOW;

        t = self.thresholds[mode];
        if metric >= t.high_min and ratio_gap >= t.high_gap:
            return HIGH;
        if metric >= t.medium_min and ratio_gap >= t.medium_gap:
            return MEDIUM;
        return LOW;
