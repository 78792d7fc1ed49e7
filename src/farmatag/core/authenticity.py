"""
AuthenticitySignalBuffer - latest hologram detections from an independent source.

Signals arrive on their own channel and are attached to whatever scan is
emitted next, as long as they are still recent.
"""

import logging

from ..models import AuthenticityDetection
from ..utils.constants import (
    DEFAULT_AUTHENTICITY_WINDOW,
    HIGH_CONFIDENCE_HOLOGRAM,
)

logger = logging.getLogger(__name__)


class AuthenticitySignalBuffer:
    """Keeps detections reported within the last `window` seconds."""

    def __init__(
        self,
        window: float = DEFAULT_AUTHENTICITY_WINDOW,
        high_confidence: float = HIGH_CONFIDENCE_HOLOGRAM,
    ):
        self.window = window
        self.high_confidence = high_confidence
        self._detections: list[AuthenticityDetection] = []

    def add(self, detections: list[AuthenticityDetection], now: float) -> None:
        """Record a batch of detections and drop expired ones."""
        self._detections.extend(detections)
        self._prune(now)
        logger.debug(
            f"Authenticity: {len(detections)} new, {len(self._detections)} recent"
        )

    def recent(self, now: float) -> tuple[AuthenticityDetection, ...]:
        self._prune(now)
        return tuple(self._detections)

    def guidance_for(self, detections: list[AuthenticityDetection]) -> str | None:
        """Advisory message for a freshly reported batch, None if empty."""
        if not detections:
            return None
        pharmaceutical = [d for d in detections if d.is_pharmaceutical]
        if pharmaceutical:
            best = max(pharmaceutical, key=lambda d: d.confidence)
            if best.confidence > self.high_confidence:
                return "Pharmaceutical hologram detected! Focus on the data matrix code"
            return "Possible hologram detected - position for a better view"
        return "Holographic element detected - look for the data matrix"

    def _prune(self, now: float) -> None:
        cutoff = now - self.window
        self._detections = [d for d in self._detections if d.timestamp >= cutoff]
