"""
Distance guidance models - discrete optical states and the raw metric behind them.
"""

from dataclasses import dataclass
from enum import Enum


class GuidanceState(Enum):
    """Discrete classification of the optical distance/focus condition."""

    ANALYZING = "analyzing"
    TOO_FAR = "too_far"
    TOO_CLOSE = "too_close"
    PERFECT = "perfect"
    UNKNOWN = "unknown"

    @property
    def message(self) -> str:
        """User-facing guidance for this state."""
        return _STATE_MESSAGES[self]


_STATE_MESSAGES = {
    GuidanceState.ANALYZING: "Analyzing distance to the label...",
    GuidanceState.TOO_FAR: "Move closer - the data matrix is too small",
    GuidanceState.TOO_CLOSE: "Move back - the data matrix is too close or blurry",
    GuidanceState.PERFECT: "Perfect distance - hold steady",
    GuidanceState.UNKNOWN: "Point the camera at the pharmaceutical label",
}


@dataclass(frozen=True)
class DistanceMetric:
    """
    Raw distance/sharpness measurement from an external frame analyzer.

    Attributes:
        code_area_fraction: Fraction of the frame covered by the code, None if not found
        sharpness: Laplacian-variance style blur score, None if not measured
    """

    code_area_fraction: float | None = None
    sharpness: float | None = None
