"""
Zoom/Focus Controller

Consumes guidance-state transitions and produces camera commands:
- TOO_FAR / TOO_CLOSE: multiplicative zoom ramps, clamped to the device range
- PERFECT: focus lock
- Post-zoom refocus, subject-area refocus and the blur correction sweep as
  deferred follow-ups

Every kind of adjustment is rate-limited and budgeted so the loop cannot
hunt indefinitely. Budgets only refill on an explicit reset.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

from ..config.schemas import FocusConfig, ZoomConfig
from ..models import (
    Command,
    DeviceCapabilities,
    FocusMode,
    FocusRange,
    GuidanceState,
    LockFocus,
    SetFocusMode,
    SetLensPosition,
    SetZoom,
)
from ..utils.constants import FOCUS_CENTER

logger = logging.getLogger(__name__)

FOCUS_EXHAUSTED_MESSAGE = (
    "Unable to lock focus - hold the label steady under even light, "
    "or start a new scan"
)


@dataclass
class ControlOutput:
    """Commands to send and advisory messages to show."""

    commands: list[Command] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    def extend(self, other: "ControlOutput") -> None:
        self.commands.extend(other.commands)
        self.messages.extend(other.messages)


@dataclass
class ControllerBudget:
    """Per-session counters; reset only by an explicit session reset."""

    zoom_adjustment_count: int = 0
    focus_retry_count: int = 0
    last_focus_adjustment_time: float = -math.inf
    is_manual_focus_mode: bool = False

    def reset(self) -> None:
        self.zoom_adjustment_count = 0
        self.focus_retry_count = 0
        self.last_focus_adjustment_time = -math.inf
        self.is_manual_focus_mode = False


# (delay seconds, action taking the clock time at which it runs)
DeferredAction = Callable[[float], ControlOutput]
Defer = Callable[[float, DeferredAction], None]


class ZoomFocusController:
    """
    Maps guidance transitions to zoom and focus commands.

    Not thread-safe on its own: the owning session serializes calls.
    Deferred work goes through `defer`, which the session wraps so that
    follow-ups scheduled before a stop or reset never land.
    """

    def __init__(
        self,
        capabilities: DeviceCapabilities,
        defer: Defer,
        zoom: ZoomConfig | None = None,
        focus: FocusConfig | None = None,
    ):
        self.capabilities = capabilities
        self.zoom = zoom or ZoomConfig()
        self.focus = focus or FocusConfig()
        self._defer = defer

        self.budget = ControllerBudget()
        self.zoom_factor = capabilities.min_zoom_factor
        self.focus_mode = FocusMode.CONTINUOUS_AUTO
        self.latest_sharpness: float | None = None
        self._previous_zoom = self.zoom_factor
        self._exhaustion_reported = False

    # ------------------------------------------------------------------
    # Guidance transitions

    def on_guidance_transition(self, state: GuidanceState, now: float) -> ControlOutput:
        """React to a new guidance state (callers pass transitions only)."""
        if state is GuidanceState.PERFECT:
            logger.info(f"Perfect distance achieved at {self.zoom_factor:.1f}x zoom")
            return self.attempt_focus_lock()

        if state not in (GuidanceState.TOO_FAR, GuidanceState.TOO_CLOSE):
            return ControlOutput()

        if not self._zoom_allowed():
            return ControlOutput()

        current = self.zoom_factor
        if state is GuidanceState.TOO_FAR:
            target = min(current * self.zoom.zoom_in_factor, self.capabilities.max_zoom_factor)
            logger.info(f"Auto-zoom: zooming in from {current:.1f}x to {target:.1f}x")
        else:
            target = max(current * self.zoom.zoom_out_factor, self.capabilities.min_zoom_factor)
            logger.info(f"Auto-zoom: zooming out from {current:.1f}x to {target:.1f}x")

        return self.apply_zoom(target, coordinate_focus=True)

    def _zoom_allowed(self) -> bool:
        if not self.capabilities.has_zoom_range:
            logger.debug("Auto-zoom skipped: device reports no zoom range")
            return False
        if self.budget.zoom_adjustment_count >= self.zoom.max_adjustments:
            logger.debug(
                f"Auto-zoom skipped: budget of {self.zoom.max_adjustments} exhausted"
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Zoom

    def apply_zoom(self, target: float, coordinate_focus: bool = False) -> ControlOutput:
        """
        Ramp to `target`, choosing the rate from the size of the change.

        With coordinate_focus, focus is pre-set to near-range continuous AF
        at the center and a refocus is deferred until the optics settle.
        """
        output = ControlOutput()
        difference = abs(target - self.zoom_factor)
        large_change = difference > self.zoom.large_change_threshold

        if coordinate_focus and self.capabilities.supports(FocusMode.CONTINUOUS_AUTO):
            output.commands.append(self._continuous_focus(FocusRange.NEAR))

        ramp_rate = self.zoom.slow_ramp_rate if large_change else self.zoom.fast_ramp_rate
        output.commands.append(SetZoom(factor=target, ramp_rate=ramp_rate))

        self._previous_zoom = self.zoom_factor
        self.zoom_factor = target
        self.budget.zoom_adjustment_count += 1
        logger.info(
            f"Zoom: applied {target:.1f}x at rate {ramp_rate} "
            f"(adjustment #{self.budget.zoom_adjustment_count})"
        )

        if coordinate_focus:
            delay = (
                self.zoom.large_change_focus_delay
                if large_change
                else self.zoom.small_change_focus_delay
            )
            self._defer(
                delay,
                lambda now: self.attempt_focus_adjustment("post-zoom-coordination", now),
            )

        return output

    def on_command_failed(self, command: Command) -> None:
        """Roll back local bookkeeping for a command the actuator rejected."""
        if isinstance(command, SetZoom):
            self.zoom_factor = self._previous_zoom
        elif isinstance(command, (LockFocus, SetLensPosition)):
            self.budget.is_manual_focus_mode = False
            self.focus_mode = FocusMode.CONTINUOUS_AUTO

    # ------------------------------------------------------------------
    # Focus

    def attempt_focus_adjustment(self, reason: str, now: float) -> ControlOutput:
        """
        Re-run autofocus at the frame center, rate-limited and budgeted.

        Every attempt counts against the retry budget whether or not the
        device ends up in focus.
        """
        output = ControlOutput()
        budget = self.budget

        if budget.focus_retry_count >= self.focus.max_retries:
            if not self._exhaustion_reported:
                self._exhaustion_reported = True
                output.messages.append(FOCUS_EXHAUSTED_MESSAGE)
                logger.info(f"Focus adjustment ({reason}) skipped: retry budget exhausted")
            return output

        if now - budget.last_focus_adjustment_time < self.focus.adjustment_interval:
            logger.debug(f"Focus adjustment ({reason}) skipped: too recent")
            return output

        budget.last_focus_adjustment_time = now
        budget.focus_retry_count += 1

        if self.capabilities.supports(FocusMode.CONTINUOUS_AUTO) and not budget.is_manual_focus_mode:
            output.commands.append(self._continuous_focus(FocusRange.NEAR))
            logger.info(f"Focus adjustment ({reason}): continuous AF, near range, center")
        elif self.capabilities.supports(FocusMode.AUTO):
            self.focus_mode = FocusMode.AUTO
            output.commands.append(SetFocusMode(FocusMode.AUTO, point=self._center()))
            logger.info(f"Focus adjustment ({reason}): single-shot AF at center")

        return output

    def attempt_focus_lock(self) -> ControlOutput:
        output = ControlOutput()
        if not self.capabilities.supports(FocusMode.LOCKED):
            return output

        output.commands.append(LockFocus())
        self.focus_mode = FocusMode.LOCKED
        self.budget.is_manual_focus_mode = True
        logger.info("Focus locked at optimal distance")
        return output

    def focus_at_point(self, point: tuple[float, float]) -> ControlOutput:
        """Move the focus point of interest without changing the focus mode."""
        output = ControlOutput()
        if not self.capabilities.supports_focus_point or self.focus_mode is FocusMode.LOCKED:
            return output
        output.commands.append(SetFocusMode(self.focus_mode, point=point))
        return output

    # ------------------------------------------------------------------
    # Blur correction

    def on_blur(self, sharpness: float, now: float) -> ControlOutput:
        """
        Start a blur correction sequence.

        Immediate autofocus first; if the image is still blurry a moment
        later, sweep through manual lens positions while budget remains.
        """
        self.latest_sharpness = sharpness
        elapsed = now - self.budget.last_focus_adjustment_time
        if elapsed < self.focus.adjustment_interval:
            logger.debug(f"Blur detected but focus adjustment too recent ({elapsed:.1f}s ago)")
            return ControlOutput()

        logger.info(f"Blur detected (sharpness {sharpness:.1f}): starting focus correction")
        output = self.attempt_focus_adjustment("blur-detection-immediate", now)
        self._defer(self.focus.blur_check_delay, self._blur_followup)
        return output

    def _blur_followup(self, now: float) -> ControlOutput:
        if self.budget.focus_retry_count >= self.focus.max_retries:
            return ControlOutput()
        sharpness = self.latest_sharpness
        if sharpness is not None and sharpness >= self.focus.blur_threshold:
            logger.debug("Blur cleared by autofocus, no manual sweep")
            return ControlOutput()

        for index, position in enumerate(self.focus.manual_lens_positions):
            self._defer(
                index * self.focus.manual_lens_spacing,
                lambda t, p=position: self._attempt_manual_focus(p, t),
            )
        return ControlOutput()

    def _attempt_manual_focus(self, position: float, now: float) -> ControlOutput:
        output = ControlOutput()
        budget = self.budget
        if (
            not self.capabilities.supports_lens_position
            or budget.focus_retry_count >= self.focus.max_retries
            or now - budget.last_focus_adjustment_time < self.focus.manual_interval
        ):
            return output

        budget.last_focus_adjustment_time = now
        budget.focus_retry_count += 1
        budget.is_manual_focus_mode = True
        self.focus_mode = FocusMode.LOCKED
        output.commands.append(SetLensPosition(position))
        logger.info(f"Manual focus: lens position {position}")

        self._defer(self.focus.manual_reset_delay, self._reset_to_auto_if_needed)
        return output

    def _reset_to_auto_if_needed(self, now: float) -> ControlOutput:
        output = ControlOutput()
        budget = self.budget
        if not budget.is_manual_focus_mode or budget.focus_retry_count < self.focus.max_retries:
            return output
        if not self.capabilities.supports(FocusMode.CONTINUOUS_AUTO):
            return output

        output.commands.append(self._continuous_focus(FocusRange.NEAR, centered=False))
        budget.is_manual_focus_mode = False
        logger.info("Returned to continuous AF after manual focus sequence")
        return output

    # ------------------------------------------------------------------
    # Reset

    def reset(self) -> ControlOutput:
        """Refill budgets and return optics to 1x continuous AF."""
        self.budget.reset()
        self.latest_sharpness = None
        self._exhaustion_reported = False

        output = ControlOutput()
        if self.capabilities.supports(FocusMode.CONTINUOUS_AUTO):
            output.commands.append(self._continuous_focus(FocusRange.NONE, centered=False))
        if self.capabilities.has_zoom_range:
            output.commands.append(
                SetZoom(factor=self.capabilities.min_zoom_factor, ramp_rate=self.zoom.fast_ramp_rate)
            )
        self.zoom_factor = self.capabilities.min_zoom_factor
        self._previous_zoom = self.zoom_factor
        logger.info("Auto-zoom and focus reset for new scanning session")
        return output

    # ------------------------------------------------------------------

    def _center(self) -> tuple[float, float] | None:
        return FOCUS_CENTER if self.capabilities.supports_focus_point else None

    def _continuous_focus(self, range_restriction: FocusRange, centered: bool = True) -> SetFocusMode:
        self.focus_mode = FocusMode.CONTINUOUS_AUTO
        return SetFocusMode(
            FocusMode.CONTINUOUS_AUTO,
            point=self._center() if centered else None,
            range_restriction=range_restriction,
        )
