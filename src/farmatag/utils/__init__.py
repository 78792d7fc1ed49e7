"""
Utility modules for constants.
"""

from .constants import (
    DEFAULT_AUTHENTICITY_WINDOW,
    DEFAULT_SCAN_COOLDOWN,
    ENV_MAX_ZOOM_ADJUSTMENTS,
    ENV_SCAN_COOLDOWN,
    GS1_GROUP_SEPARATOR,
    MAX_FOCUS_RETRIES,
    MAX_ZOOM_ADJUSTMENTS,
    NO_DETECTION_HINTS,
)

__all__ = [
    "DEFAULT_AUTHENTICITY_WINDOW",
    "DEFAULT_SCAN_COOLDOWN",
    "ENV_MAX_ZOOM_ADJUSTMENTS",
    "ENV_SCAN_COOLDOWN",
    "GS1_GROUP_SEPARATOR",
    "MAX_FOCUS_RETRIES",
    "MAX_ZOOM_ADJUSTMENTS",
    "NO_DETECTION_HINTS",
]
