"""
Distance guidance - maps a distance/sharpness signal to discrete guidance
states and reports only transitions.

Reacting to transitions alone is what keeps the zoom loop from oscillating:
a target that stays "too far" for thirty frames triggers one zoom, not thirty.
"""

import logging
from collections.abc import Callable

from ..models import DistanceMetric, GuidanceState
from ..utils.constants import (
    BLUR_THRESHOLD,
    MAX_CODE_AREA_FRACTION,
    MIN_CODE_AREA_FRACTION,
)

logger = logging.getLogger(__name__)


class ThresholdDistanceClassifier:
    """
    Default metric-to-state mapping.

    Blur reads as TOO_CLOSE: a lens that cannot focus on the label is
    usually too near it.
    """

    def __init__(
        self,
        min_area_fraction: float = MIN_CODE_AREA_FRACTION,
        max_area_fraction: float = MAX_CODE_AREA_FRACTION,
        blur_threshold: float = BLUR_THRESHOLD,
    ):
        self.min_area_fraction = min_area_fraction
        self.max_area_fraction = max_area_fraction
        self.blur_threshold = blur_threshold

    def __call__(self, metric: DistanceMetric | GuidanceState | None) -> GuidanceState:
        if isinstance(metric, GuidanceState):
            return metric
        if metric is None or metric.code_area_fraction is None:
            return GuidanceState.UNKNOWN

        area = metric.code_area_fraction
        if area < self.min_area_fraction:
            return GuidanceState.TOO_FAR
        if area > self.max_area_fraction:
            return GuidanceState.TOO_CLOSE
        if self.is_blurry(metric):
            return GuidanceState.TOO_CLOSE
        return GuidanceState.PERFECT

    def is_blurry(self, metric: DistanceMetric | GuidanceState | None) -> bool:
        return (
            isinstance(metric, DistanceMetric)
            and metric.sharpness is not None
            and metric.sharpness < self.blur_threshold
        )


class DistanceGuidanceEngine:
    """Stores the previous state and emits only on change."""

    def __init__(
        self,
        classifier: Callable[[object], GuidanceState] | None = None,
    ):
        self.classifier = classifier or ThresholdDistanceClassifier()
        self.state = GuidanceState.ANALYZING

    def update(self, metric) -> GuidanceState | None:
        """
        Classify a metric and report a transition.

        Args:
            metric: Anything the classifier accepts (DistanceMetric,
                    GuidanceState, or None)

        Returns:
            The new state if it differs from the previous one, else None
        """
        new_state = self.classifier(metric)
        if new_state == self.state:
            return None

        logger.debug(f"Guidance: {self.state.name} -> {new_state.name}")
        self.state = new_state
        return new_state

    def reset(self) -> None:
        self.state = GuidanceState.ANALYZING
