"""
Actuator commands - explicit values for every camera-control request.

The controller returns these; the session forwards them to the actuator.
"""

from dataclasses import dataclass
from enum import Enum


class FocusMode(Enum):
    CONTINUOUS_AUTO = "continuous_auto"
    AUTO = "auto"
    LOCKED = "locked"


class FocusRange(Enum):
    NONE = "none"
    NEAR = "near"


@dataclass(frozen=True)
class SetZoom:
    """Ramp the zoom factor to `factor` at `ramp_rate`."""

    factor: float
    ramp_rate: float


@dataclass(frozen=True)
class SetFocusMode:
    """Switch focus mode, optionally with a normalized point of interest."""

    mode: FocusMode
    point: tuple[float, float] | None = None
    range_restriction: FocusRange = FocusRange.NONE


@dataclass(frozen=True)
class LockFocus:
    """Lock focus at the current lens position."""


@dataclass(frozen=True)
class SetLensPosition:
    """Lock focus at an explicit lens position in [0, 1]."""

    position: float


Command = SetZoom | SetFocusMode | LockFocus | SetLensPosition
