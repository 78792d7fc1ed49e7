"""
Observation data models - raw detector reads, quality tiers, and emitted scans.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from types import MappingProxyType

from ..utils.constants import PHARMACEUTICAL_HOLOGRAM


class QualityTier(IntEnum):
    """
    Trustworthiness of a single decoded observation.

    Ordered so that a higher value means stricter thresholds were met.
    """

    UNREADABLE = 0
    POOR = 1
    GOOD = 2
    EXCELLENT = 3

    @property
    def is_reliable(self) -> bool:
        """GOOD or better - safe to act on without a re-read."""
        return self >= QualityTier.GOOD


@dataclass(frozen=True)
class RawObservation:
    """
    One barcode read produced by the external detector for one frame.

    Attributes:
        payload: Decoded payload string
        confidence: Detector confidence in [0, 1]
        bounding_box_area: Fraction of the frame covered by the code, in [0, 1]
        center: Normalized (x, y) center of the bounding box, if known
    """

    payload: str
    confidence: float
    bounding_box_area: float
    center: tuple[float, float] | None = None


@dataclass(frozen=True)
class AuthenticityDetection:
    """A hologram/authenticity detection reported by an independent source."""

    kind: str
    confidence: float
    reflective_intensity: float = 0.0
    timestamp: float = 0.0

    @property
    def is_pharmaceutical(self) -> bool:
        return self.kind == PHARMACEUTICAL_HOLOGRAM


@dataclass(frozen=True)
class ScanResult:
    """
    Emitted scan. Immutable once created; owned by the presentation layer.

    Attributes:
        payload: Raw payload string as read
        quality: Quality tier of the observation
        fields: Decoded GS1 fields (see core.gs1), read-only
        timestamp: Session clock seconds at emission
        authenticity_signals: Recent hologram detections at emission time
        scanned_at: Wall-clock time of emission
    """

    payload: str
    quality: QualityTier
    fields: Mapping[str, str] = field(hash=False)
    timestamp: float
    authenticity_signals: tuple[AuthenticityDetection, ...] = ()
    scanned_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        # Listeners share the result; keep the field map read-only
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "authenticity_signals", tuple(self.authenticity_signals))

    @property
    def pharmaceutical_signals(self) -> tuple[AuthenticityDetection, ...]:
        return tuple(s for s in self.authenticity_signals if s.is_pharmaceutical)

    @property
    def authenticated(self) -> bool:
        """True if at least one pharmaceutical hologram accompanied the scan."""
        return bool(self.pharmaceutical_signals)

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "payload": self.payload,
            "quality": self.quality.name,
            "fields": dict(self.fields),
            "timestamp": self.timestamp,
            "scanned_at": self.scanned_at.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
            "holograms": len(self.authenticity_signals),
            "authenticated": self.authenticated,
        }
