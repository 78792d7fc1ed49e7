"""
Configuration loading and validation.

- load_config: Find, read, override and validate a YAML config
- validate_config: Collect errors/warnings without raising
- load_config_with_env: Apply environment variable overrides

Pydantic schemas available for type-safe validation:
- ScannerConfig: Complete configuration schema
- validate_config_pydantic: Validate and parse config to Pydantic model
"""

from .loader import (
    ConfigError,
    ValidationResult,
    find_config_file,
    load_config,
    load_config_with_env,
    print_validation_result,
    read_config_file,
    validate_config,
)
from .schemas import (
    AuthenticityConfig,
    DistanceConfig,
    FocusConfig,
    GuidanceConfig,
    ScanConfig,
    ScannerConfig,
    ZoomConfig,
    validate_config_pydantic,
)

__all__ = [
    # Pydantic validation
    "AuthenticityConfig",
    "DistanceConfig",
    "FocusConfig",
    "GuidanceConfig",
    "ScanConfig",
    "ScannerConfig",
    "ZoomConfig",
    "validate_config_pydantic",
    # Loading
    "ConfigError",
    "ValidationResult",
    "find_config_file",
    "load_config",
    "load_config_with_env",
    "print_validation_result",
    "read_config_file",
    "validate_config",
]
