"""
Session replay - run a recorded scanning session through a ScannerSession on
a virtual clock, recording everything the session emits and commands.

Replay file format (YAML):

    camera:
      max_zoom_factor: 6.0
      supports_lens_position: true
    frames:
      - t: 0.0
        observations:
          - {payload: "0109501101530008...", confidence: 0.97, area: 0.01}
        distance: {area: 0.002, sharpness: 140}
        holograms:
          - {kind: pharmaceutical, confidence: 0.9}
      - t: 1.5
        distance: {state: perfect}
        subject_area_change: true
      - t: 9.0
        reset: true

Within a frame: deferred actions due by `t` run first, then reset,
holograms, observations, subject-area change, and finally the distance metric.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import ConfigError, ScannerConfig
from .core import VirtualScheduler
from .models import (
    ActuatorError,
    AuthenticityDetection,
    Command,
    DeviceCapabilities,
    DistanceMetric,
    FocusMode,
    FocusRange,
    GuidanceState,
    LockFocus,
    RawObservation,
    ScanResult,
    SetFocusMode,
    SetLensPosition,
    SetZoom,
)
from .session import ScannerSession

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Recording collaborators


class RecordingActuator:
    """
    CameraActuator that records commands instead of moving a lens.

    Commands whose type is listed in `reject` raise ActuatorError.
    """

    def __init__(
        self,
        capabilities: DeviceCapabilities | None = None,
        clock=None,
        reject: tuple[type, ...] = (),
    ):
        self._capabilities = capabilities or DeviceCapabilities(max_zoom_factor=6.0)
        self._clock = clock
        self._reject = reject
        self.commands: list[Command] = []
        self.timeline: list[tuple[float, Command]] = []

    def capabilities(self) -> DeviceCapabilities:
        return self._capabilities

    def set_zoom(self, factor: float, ramp_rate: float) -> None:
        self._record(SetZoom(factor, ramp_rate))

    def set_focus_mode(
        self,
        mode: FocusMode,
        point: tuple[float, float] | None = None,
        range_restriction: FocusRange = FocusRange.NONE,
    ) -> None:
        self._record(SetFocusMode(mode, point, range_restriction))

    def lock_focus(self) -> None:
        self._record(LockFocus())

    def set_lens_position(self, position: float) -> None:
        self._record(SetLensPosition(position))

    def commands_of(self, kind: type) -> list:
        return [c for c in self.commands if isinstance(c, kind)]

    def _record(self, command: Command) -> None:
        if isinstance(command, self._reject):
            raise ActuatorError(f"{type(command).__name__} not supported")
        self.commands.append(command)
        self.timeline.append((self._clock() if self._clock else 0.0, command))


class RecordingListener:
    """ScanListener that keeps everything it receives."""

    def __init__(self):
        self.results: list[ScanResult] = []
        self.messages: list[str] = []

    def on_scan_result(self, result: ScanResult) -> None:
        self.results.append(result)

    def on_guidance_message(self, message: str) -> None:
        self.messages.append(message)


# ----------------------------------------------------------------------
# Replay file schema


class _ReplayModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ReplayObservation(_ReplayModel):
    payload: str
    confidence: float = Field(..., ge=0, le=1)
    area: float = Field(..., ge=0, le=1)
    center: tuple[float, float] | None = None


class ReplayDistance(_ReplayModel):
    area: float | None = Field(default=None, ge=0, le=1)
    sharpness: float | None = Field(default=None, ge=0)
    state: GuidanceState | None = None


class ReplayHologram(_ReplayModel):
    kind: str
    confidence: float = Field(..., ge=0, le=1)
    reflective_intensity: float = 0.0


class ReplayFrame(_ReplayModel):
    t: float = Field(..., ge=0)
    observations: list[ReplayObservation] | None = None
    distance: ReplayDistance | None = None
    holograms: list[ReplayHologram] | None = None
    subject_area_change: bool = False
    reset: bool = False


class ReplayCamera(_ReplayModel):
    max_zoom_factor: float = Field(default=6.0, ge=1.0)
    supported_focus_modes: list[FocusMode] = Field(default_factory=lambda: list(FocusMode))
    supports_lens_position: bool = False
    supports_focus_point: bool = True


class ReplayScript(_ReplayModel):
    camera: ReplayCamera = Field(default_factory=ReplayCamera)
    frames: list[ReplayFrame] = Field(default_factory=list)


def load_replay_script(path: str | Path) -> ReplayScript:
    """
    Load and validate a replay file.

    Raises:
        ConfigError: If the file is unreadable or malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return ReplayScript(**data)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read replay file {path}: {e}") from e
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"Invalid replay file {path}: {e}") from e


# ----------------------------------------------------------------------
# Running


@dataclass
class ReplayReport:
    """Everything a replayed session produced, in order."""

    results: list[ScanResult] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    commands: list[tuple[float, Command]] = field(default_factory=list)
    stats: dict = field(default_factory=dict)


def _to_metric(distance: ReplayDistance) -> DistanceMetric | GuidanceState:
    if distance.state is not None:
        return distance.state
    return DistanceMetric(code_area_fraction=distance.area, sharpness=distance.sharpness)


def run_replay(script: ReplayScript, config: ScannerConfig | None = None) -> ReplayReport:
    """
    Replay a script on a virtual clock.

    Deferred actions still pending after the last frame are run to
    completion before the session stops.
    """
    scheduler = VirtualScheduler()
    camera = script.camera
    actuator = RecordingActuator(
        DeviceCapabilities(
            max_zoom_factor=camera.max_zoom_factor,
            supported_focus_modes=frozenset(camera.supported_focus_modes),
            supports_lens_position=camera.supports_lens_position,
            supports_focus_point=camera.supports_focus_point,
        ),
        clock=scheduler.now,
    )
    listener = RecordingListener()
    session = ScannerSession(actuator, listener, config=config, scheduler=scheduler)

    frames = sorted(script.frames, key=lambda frame: frame.t)
    for frame in frames:
        scheduler.advance_to(frame.t)
        if frame.reset:
            session.reset()
        if frame.holograms:
            session.report_authenticity_signals(
                [
                    AuthenticityDetection(h.kind, h.confidence, h.reflective_intensity)
                    for h in frame.holograms
                ]
            )
        if frame.observations is not None:
            session.report_observations(
                [
                    RawObservation(o.payload, o.confidence, o.area, o.center)
                    for o in frame.observations
                ]
            )
        if frame.subject_area_change:
            session.report_subject_area_change()
        if frame.distance is not None:
            session.report_distance_metric(_to_metric(frame.distance))

    # Drain follow-ups (refocus, lens sweep) scheduled by the last frames
    while scheduler.pending:
        scheduler.advance(1.0)

    stats = session.get_stats()
    session.stop()
    logger.info(f"Replayed {len(frames)} frame(s): {len(listener.results)} scan(s)")

    return ReplayReport(
        results=listener.results,
        messages=listener.messages,
        commands=actuator.timeline,
        stats=stats,
    )
