"""
Observation quality classification.

Thresholds jointly gate on detector certainty, payload length (information
sufficiency) and apparent optical size. Rules are evaluated in order and
the first match wins.
"""

from dataclasses import dataclass

from ..models import QualityTier, RawObservation


@dataclass(frozen=True)
class QualityRule:
    """All bounds are strict lower bounds; None means not gated."""

    tier: QualityTier
    min_confidence: float
    min_payload_length: int
    min_area: float | None = None

    def matches(self, confidence: float, payload_length: int, area: float) -> bool:
        if confidence <= self.min_confidence:
            return False
        if payload_length <= self.min_payload_length:
            return False
        return self.min_area is None or area > self.min_area


QUALITY_RULES: tuple[QualityRule, ...] = (
    QualityRule(QualityTier.EXCELLENT, 0.95, 15, 0.008),
    QualityRule(QualityTier.GOOD, 0.85, 10, 0.005),
    QualityRule(QualityTier.POOR, 0.70, 5),
)

QUALITY_MESSAGES = {
    QualityTier.EXCELLENT: "Excellent scan quality - data captured",
    QualityTier.GOOD: "Good scan quality - data captured",
    QualityTier.POOR: "Poor quality - move closer or improve lighting",
    QualityTier.UNREADABLE: "Unreadable - adjust position and lighting",
}


def classify(
    confidence: float,
    payload_length: int,
    bounding_box_area: float,
    rules: tuple[QualityRule, ...] = QUALITY_RULES,
) -> QualityTier:
    """Return the first tier whose thresholds are all exceeded."""
    for rule in rules:
        if rule.matches(confidence, payload_length, bounding_box_area):
            return rule.tier
    return QualityTier.UNREADABLE


def classify_observation(observation: RawObservation) -> QualityTier:
    return classify(
        observation.confidence,
        len(observation.payload or ""),
        observation.bounding_box_area,
    )


def quality_message(tier: QualityTier) -> str:
    return QUALITY_MESSAGES[tier]
