"""
Constants used throughout the FarmaTag scanner core
"""

# GS1 payload structure
GS1_GROUP_SEPARATOR = "\x1d"  # FNC1 as transmitted by Data Matrix readers
UNKNOWN_COUNTRY = "Unknown"

# Scan deduplication
DEFAULT_SCAN_COOLDOWN = 1.0  # Seconds between two emitted scans

# Authenticity (hologram) signals
DEFAULT_AUTHENTICITY_WINDOW = 3.0  # Seconds a hologram detection stays "recent"
HIGH_CONFIDENCE_HOLOGRAM = 0.8
PHARMACEUTICAL_HOLOGRAM = "pharmaceutical"

# Zoom control
MAX_ZOOM_ADJUSTMENTS = 10
ZOOM_IN_FACTOR = 1.3
ZOOM_OUT_FACTOR = 0.8
MIN_ZOOM_FACTOR = 1.0
LARGE_ZOOM_CHANGE = 1.0  # Zoom-factor delta above which a change counts as large
SLOW_RAMP_RATE = 1.5  # Used for large changes
FAST_RAMP_RATE = 2.5  # Used for fine adjustments
LARGE_CHANGE_FOCUS_DELAY = 1.2  # Seconds before refocusing after a large zoom
SMALL_CHANGE_FOCUS_DELAY = 0.8

# Focus control
MAX_FOCUS_RETRIES = 5
FOCUS_ADJUSTMENT_INTERVAL = 2.0  # Minimum seconds between focus adjustments
MANUAL_FOCUS_INTERVAL = 0.5
MANUAL_FOCUS_RESET_DELAY = 2.0
BLUR_CHECK_DELAY = 1.0
BLUR_THRESHOLD = 75.0  # Laplacian variance below this is considered blurry
MANUAL_LENS_POSITIONS = (0.85, 0.75, 0.9, 0.7, 0.6)
MANUAL_LENS_SPACING = 0.6  # Seconds between manual lens positions
FOCUS_CENTER = (0.5, 0.5)

# Distance classification (fraction of frame covered by the code)
MIN_CODE_AREA_FRACTION = 0.005
MAX_CODE_AREA_FRACTION = 0.25

# Environment variables
ENV_SCAN_COOLDOWN = "FARMATAG_SCAN_COOLDOWN"
ENV_MAX_ZOOM_ADJUSTMENTS = "FARMATAG_MAX_ZOOM_ADJUSTMENTS"

# Advisory messages shown while nothing readable is in view
NO_DETECTION_HINTS = (
    "Center the data matrix in the camera view",
    "Move closer to the pharmaceutical label",
    "Ensure adequate lighting on the label",
    "Hold steady and focus on the data matrix",
    "Keep camera parallel to the label surface",
)
