"""
Consolidated data models for the scanner core.

This package contains the data structures and collaborator protocols
shared by the decoder, pipeline, controller and session.
"""

from .commands import (
    Command,
    FocusMode,
    FocusRange,
    LockFocus,
    SetFocusMode,
    SetLensPosition,
    SetZoom,
)
from .guidance import DistanceMetric, GuidanceState
from .interfaces import (
    ActuatorError,
    CallbackScanListener,
    CameraActuator,
    DeviceCapabilities,
    ScanListener,
)
from .observations import AuthenticityDetection, QualityTier, RawObservation, ScanResult
from .policy import StampPolicy

__all__ = [
    # Protocols
    "ActuatorError",
    "CallbackScanListener",
    "CameraActuator",
    "DeviceCapabilities",
    "ScanListener",
    # Observation models
    "AuthenticityDetection",
    "QualityTier",
    "RawObservation",
    "ScanResult",
    "StampPolicy",
    # Guidance models
    "DistanceMetric",
    "GuidanceState",
    # Commands
    "Command",
    "FocusMode",
    "FocusRange",
    "LockFocus",
    "SetFocusMode",
    "SetLensPosition",
    "SetZoom",
]
