"""
Pydantic schemas for configuration validation.

Provides type-safe, declarative validation with clear error messages.
Every field defaults to the value in utils.constants, so an empty file
is a valid configuration.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models import StampPolicy
from ..utils import constants as c


class StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class ScanConfig(StrictModel):
    """Scan deduplication settings."""

    cooldown_seconds: float = Field(default=c.DEFAULT_SCAN_COOLDOWN, ge=0)
    stamp_policy: StampPolicy = Field(
        default=StampPolicy.ALWAYS,
        description="When the cooldown timestamp refreshes: always | on_emit",
    )
    focus_on_detection: bool = Field(
        default=False, description="Move focus point to the first detected code"
    )


class ZoomConfig(StrictModel):
    """Automatic zoom settings."""

    max_adjustments: int = Field(default=c.MAX_ZOOM_ADJUSTMENTS, ge=0)
    zoom_in_factor: float = Field(default=c.ZOOM_IN_FACTOR, gt=1.0)
    zoom_out_factor: float = Field(default=c.ZOOM_OUT_FACTOR, gt=0.0, lt=1.0)
    large_change_threshold: float = Field(default=c.LARGE_ZOOM_CHANGE, gt=0)
    slow_ramp_rate: float = Field(default=c.SLOW_RAMP_RATE, gt=0)
    fast_ramp_rate: float = Field(default=c.FAST_RAMP_RATE, gt=0)
    large_change_focus_delay: float = Field(default=c.LARGE_CHANGE_FOCUS_DELAY, ge=0)
    small_change_focus_delay: float = Field(default=c.SMALL_CHANGE_FOCUS_DELAY, ge=0)

    @model_validator(mode="after")
    def validate_rates(self):
        if self.slow_ramp_rate > self.fast_ramp_rate:
            raise ValueError("slow_ramp_rate must be <= fast_ramp_rate")
        return self


class FocusConfig(StrictModel):
    """Focus adjustment settings."""

    max_retries: int = Field(default=c.MAX_FOCUS_RETRIES, ge=0)
    adjustment_interval: float = Field(default=c.FOCUS_ADJUSTMENT_INTERVAL, ge=0)
    manual_interval: float = Field(default=c.MANUAL_FOCUS_INTERVAL, ge=0)
    manual_reset_delay: float = Field(default=c.MANUAL_FOCUS_RESET_DELAY, ge=0)
    blur_correction: bool = Field(
        default=False, description="Run the autofocus + manual lens sweep on blur"
    )
    blur_check_delay: float = Field(default=c.BLUR_CHECK_DELAY, ge=0)
    blur_threshold: float = Field(default=c.BLUR_THRESHOLD, ge=0)
    manual_lens_positions: list[float] = Field(
        default_factory=lambda: list(c.MANUAL_LENS_POSITIONS)
    )
    manual_lens_spacing: float = Field(default=c.MANUAL_LENS_SPACING, ge=0)

    @field_validator("manual_lens_positions")
    @classmethod
    def validate_lens_positions(cls, v: list[float]) -> list[float]:
        if any(not 0.0 <= p <= 1.0 for p in v):
            raise ValueError("Lens positions must be between 0.0 and 1.0")
        return v


class DistanceConfig(StrictModel):
    """Metric-to-guidance thresholds."""

    min_area_fraction: float = Field(default=c.MIN_CODE_AREA_FRACTION, ge=0, le=1)
    max_area_fraction: float = Field(default=c.MAX_CODE_AREA_FRACTION, ge=0, le=1)

    @model_validator(mode="after")
    def validate_range(self):
        if self.min_area_fraction >= self.max_area_fraction:
            raise ValueError("max_area_fraction must be > min_area_fraction")
        return self


class AuthenticityConfig(StrictModel):
    """Hologram signal settings."""

    recent_window_seconds: float = Field(default=c.DEFAULT_AUTHENTICITY_WINDOW, ge=0)
    high_confidence: float = Field(default=c.HIGH_CONFIDENCE_HOLOGRAM, ge=0, le=1)


class GuidanceConfig(StrictModel):
    """Advisory message settings."""

    no_detection_hints: list[str] = Field(
        default_factory=lambda: list(c.NO_DETECTION_HINTS)
    )
    announce_transitions: bool = Field(
        default=True, description="Report each guidance-state change as a message"
    )


class ScannerConfig(StrictModel):
    """Complete configuration schema."""

    scan: ScanConfig = Field(default_factory=ScanConfig)
    zoom: ZoomConfig = Field(default_factory=ZoomConfig)
    focus: FocusConfig = Field(default_factory=FocusConfig)
    distance: DistanceConfig = Field(default_factory=DistanceConfig)
    authenticity: AuthenticityConfig = Field(default_factory=AuthenticityConfig)
    guidance: GuidanceConfig = Field(default_factory=GuidanceConfig)


def validate_config_pydantic(config: dict) -> ScannerConfig:
    """
    Validate configuration using Pydantic.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated ScannerConfig object

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return ScannerConfig(**(config or {}))
