"""
FarmaTag Scanner - GS1 Data Matrix scanning core for pharmaceutical labels.

Decodes GS1 Application Identifiers, grades each read, suppresses duplicate
reads and drives camera zoom/focus from distance guidance.
"""

__version__ = "1.0.0"

from .config import ConfigError, ScannerConfig, load_config
from .core import classify, decode_payload
from .models import (
    AuthenticityDetection,
    CallbackScanListener,
    CameraActuator,
    DeviceCapabilities,
    DistanceMetric,
    GuidanceState,
    QualityTier,
    RawObservation,
    ScanListener,
    ScanResult,
)
from .session import ScannerSession

__all__ = [
    "AuthenticityDetection",
    "CallbackScanListener",
    "CameraActuator",
    "ConfigError",
    "DeviceCapabilities",
    "DistanceMetric",
    "GuidanceState",
    "QualityTier",
    "RawObservation",
    "ScanListener",
    "ScanResult",
    "ScannerConfig",
    "ScannerSession",
    "classify",
    "decode_payload",
    "load_config",
]
