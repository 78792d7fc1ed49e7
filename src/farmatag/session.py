"""
Scanner Session

Single owner of all scanner state: the detection pipeline, guidance engine,
zoom/focus controller and their budgets and timers. Three independent inbound
channels (observations, distance metrics, authenticity signals) feed it;
results and advisory messages go out to a ScanListener and camera commands
to a CameraActuator.

Every inbound call and every deferred follow-up runs under one lock, so
counters and cooldowns observe a single consistent order. Actuator commands
are fire-and-forget; a rejected command is logged and reported as guidance.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import replace

from .config import ScannerConfig
from .core import (
    AuthenticitySignalBuffer,
    ControlOutput,
    DetectionPipeline,
    DistanceGuidanceEngine,
    ScanDeduplicator,
    Scheduler,
    ThreadingScheduler,
    ThresholdDistanceClassifier,
    ZoomFocusController,
)
from .core.controller import DeferredAction
from .models import (
    AuthenticityDetection,
    CameraActuator,
    Command,
    DeviceCapabilities,
    DistanceMetric,
    GuidanceState,
    LockFocus,
    RawObservation,
    ScanListener,
    SetFocusMode,
    SetLensPosition,
    SetZoom,
)

logger = logging.getLogger(__name__)


class ScannerSession:
    """
    One scanning session against one camera.

    Example:
        session = ScannerSession(camera, listener)
        session.report_observations(detector_output)   # per frame
        session.report_distance_metric(metric)         # per frame
        session.reset()                                # new scanning attempt
        session.stop()
    """

    def __init__(
        self,
        actuator: CameraActuator,
        listener: ScanListener,
        config: ScannerConfig | None = None,
        scheduler: Scheduler | None = None,
        distance_classifier: Callable[[object], GuidanceState] | None = None,
    ):
        self.config = config or ScannerConfig()
        self.actuator = actuator
        self.listener = listener
        self.scheduler = scheduler or ThreadingScheduler()

        self._lock = threading.RLock()
        self._generation = 0
        self._stopped = False

        cfg = self.config
        self.authenticity = AuthenticitySignalBuffer(
            window=cfg.authenticity.recent_window_seconds,
            high_confidence=cfg.authenticity.high_confidence,
        )
        self.pipeline = DetectionPipeline(
            ScanDeduplicator(cfg.scan.cooldown_seconds, cfg.scan.stamp_policy),
            self.authenticity,
            hints=cfg.guidance.no_detection_hints,
        )
        self.guidance = DistanceGuidanceEngine(
            distance_classifier
            or ThresholdDistanceClassifier(
                min_area_fraction=cfg.distance.min_area_fraction,
                max_area_fraction=cfg.distance.max_area_fraction,
                blur_threshold=cfg.focus.blur_threshold,
            )
        )
        self.controller = ZoomFocusController(
            self._read_capabilities(),
            self._defer,
            zoom=cfg.zoom,
            focus=cfg.focus,
        )
        logger.info("Scanner session started")

    # ------------------------------------------------------------------
    # Inbound channels

    def report_observations(self, observations: Sequence[RawObservation]) -> None:
        """Process one frame's detector output."""
        with self._lock:
            if self._stopped:
                return
            now = self.scheduler.now()
            outcome = self.pipeline.process_frame(observations, now)

            if self.config.scan.focus_on_detection and outcome.focus_point:
                self._dispatch(self.controller.focus_at_point(outcome.focus_point))

            for result in outcome.results:
                self.listener.on_scan_result(result)
            for message in outcome.messages:
                self.listener.on_guidance_message(message)

    def report_distance_metric(self, metric: DistanceMetric | GuidanceState | None) -> None:
        """Feed one distance measurement; acts only on guidance transitions."""
        with self._lock:
            if self._stopped:
                return
            now = self.scheduler.now()
            sharpness = metric.sharpness if isinstance(metric, DistanceMetric) else None
            if sharpness is not None:
                self.controller.latest_sharpness = sharpness

            state = self.guidance.update(metric)
            if state is None:
                return

            if self.config.guidance.announce_transitions:
                self.listener.on_guidance_message(state.message)

            output = self.controller.on_guidance_transition(state, now)
            if (
                state is GuidanceState.TOO_CLOSE
                and self.config.focus.blur_correction
                and sharpness is not None
                and sharpness < self.config.focus.blur_threshold
            ):
                output.extend(self.controller.on_blur(sharpness, now))
            self._dispatch(output)

    def report_authenticity_signals(self, signals: Sequence[AuthenticityDetection]) -> None:
        """Record hologram detections; they ride along with upcoming scans."""
        with self._lock:
            if self._stopped:
                return
            now = self.scheduler.now()
            stamped = [replace(signal, timestamp=now) for signal in signals]
            self.authenticity.add(stamped, now)

            message = self.authenticity.guidance_for(stamped)
            if message:
                self.listener.on_guidance_message(message)

    def report_subject_area_change(self) -> None:
        """The scene changed substantially (user moved the phone); refocus."""
        with self._lock:
            if self._stopped:
                return
            now = self.scheduler.now()
            logger.info("Subject area changed - refocusing")
            self._dispatch(self.controller.attempt_focus_adjustment("subject-area-change", now))

    # ------------------------------------------------------------------
    # Control

    def reset(self) -> None:
        """
        Start a new scanning attempt.

        Refills zoom and focus budgets, returns guidance to ANALYZING and the
        optics to 1x continuous AF. Pending follow-ups are discarded.
        """
        with self._lock:
            if self._stopped:
                return
            self._generation += 1
            self.guidance.reset()
            self._dispatch(self.controller.reset())

    def stop(self) -> None:
        """Stop the session; nothing is emitted or commanded afterwards."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._generation += 1
        self.scheduler.cancel_all()
        logger.info(f"Scanner session stopped after {self.pipeline.scan_count} scan(s)")

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def get_stats(self) -> dict:
        """Snapshot of session state."""
        with self._lock:
            budget = self.controller.budget
            return {
                "scans": self.pipeline.scan_count,
                "guidance_state": self.guidance.state.name,
                "zoom_factor": self.controller.zoom_factor,
                "zoom_adjustments": budget.zoom_adjustment_count,
                "focus_retries": budget.focus_retry_count,
                "manual_focus": budget.is_manual_focus_mode,
                "stopped": self._stopped,
            }

    # ------------------------------------------------------------------
    # Internals

    def _read_capabilities(self) -> DeviceCapabilities:
        try:
            return self.actuator.capabilities()
        except Exception as e:
            logger.warning(f"Could not read camera capabilities, zoom disabled: {e}")
            return DeviceCapabilities()

    def _defer(self, delay: float, action: DeferredAction) -> None:
        """Schedule a controller follow-up that is dropped after stop/reset."""
        generation = self._generation

        def fire():
            with self._lock:
                if self._stopped or generation != self._generation:
                    logger.debug("Deferred camera action dropped (session reset or stopped)")
                    return
                self._dispatch(action(self.scheduler.now()))

        self.scheduler.call_later(delay, fire)

    def _dispatch(self, output: ControlOutput) -> None:
        for command in output.commands:
            self._send(command)
        for message in output.messages:
            self.listener.on_guidance_message(message)

    def _send(self, command: Command) -> None:
        """Forward one command to the actuator; rejections become guidance."""
        logger.debug(f"Camera command: {command}")
        try:
            if isinstance(command, SetZoom):
                self.actuator.set_zoom(command.factor, command.ramp_rate)
            elif isinstance(command, SetFocusMode):
                self.actuator.set_focus_mode(
                    command.mode, command.point, command.range_restriction
                )
            elif isinstance(command, LockFocus):
                self.actuator.lock_focus()
            elif isinstance(command, SetLensPosition):
                self.actuator.set_lens_position(command.position)
        except Exception as e:
            logger.warning(f"Camera rejected {type(command).__name__}: {e}")
            self.controller.on_command_failed(command)
            self.listener.on_guidance_message(f"Camera adjustment unavailable: {e}")
