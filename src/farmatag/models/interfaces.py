"""
Collaborator protocols - the camera actuator and the presentation-layer listener.

Anything that satisfies these shapes can be plugged into a ScannerSession:
a real camera binding, a replay recorder, or a test double.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .commands import FocusMode, FocusRange
from .observations import ScanResult


class ActuatorError(Exception):
    """Raised by an actuator that rejects a command (e.g. zoom out of range)."""


@dataclass(frozen=True)
class DeviceCapabilities:
    """What the camera reports it can do."""

    max_zoom_factor: float = 1.0
    min_zoom_factor: float = 1.0
    supported_focus_modes: frozenset[FocusMode] = field(
        default_factory=lambda: frozenset(FocusMode)
    )
    supports_lens_position: bool = False
    supports_focus_point: bool = True

    @property
    def has_zoom_range(self) -> bool:
        return self.max_zoom_factor > self.min_zoom_factor

    def supports(self, mode: FocusMode) -> bool:
        return mode in self.supported_focus_modes


@runtime_checkable
class CameraActuator(Protocol):
    """
    Protocol for camera control.

    All calls are fire-and-forget requests; implementations may raise
    ActuatorError when a command is rejected.
    """

    def capabilities(self) -> DeviceCapabilities: ...

    def set_zoom(self, factor: float, ramp_rate: float) -> None: ...

    def set_focus_mode(
        self,
        mode: FocusMode,
        point: tuple[float, float] | None = None,
        range_restriction: FocusRange = FocusRange.NONE,
    ) -> None: ...

    def lock_focus(self) -> None: ...

    def set_lens_position(self, position: float) -> None: ...


@runtime_checkable
class ScanListener(Protocol):
    """Protocol for the presentation layer receiving session output."""

    def on_scan_result(self, result: ScanResult) -> None: ...

    def on_guidance_message(self, message: str) -> None: ...


class CallbackScanListener:
    """
    Adapter that wraps plain callables as a ScanListener.

    Example:
        listener = CallbackScanListener(results.append, print)
    """

    def __init__(
        self,
        on_result: Callable[[ScanResult], None],
        on_message: Callable[[str], None] | None = None,
    ):
        self._on_result = on_result
        self._on_message = on_message

    def on_scan_result(self, result: ScanResult) -> None:
        self._on_result(result)

    def on_guidance_message(self, message: str) -> None:
        if self._on_message:
            self._on_message(message)
