"""
Configuration loading - YAML files, pointer files, environment overrides
and validation reporting.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..utils.constants import ENV_MAX_ZOOM_ADJUSTMENTS, ENV_SCAN_COOLDOWN
from .schemas import ScannerConfig, validate_config_pydantic

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "farmatag.yaml"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or is invalid."""


# ANSI color codes for terminal output
class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls):
        """Disable colors for non-TTY output."""
        cls.GREEN = cls.RED = cls.YELLOW = cls.RESET = ""


@dataclass
class ValidationResult:
    """Result of config validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    config: ScannerConfig | None = None


def find_config_file(config_path: str | None) -> Path | None:
    """
    Find config file in standard locations.

    Search order:
    1. Specified path (must exist)
    2. Current directory (farmatag.yaml)
    3. ~/.config/farmatag/config.yaml

    Returns:
        Path to config file, or None to run on built-in defaults

    Raises:
        ConfigError: If a specified path does not exist
    """
    if config_path:
        specified = Path(config_path)
        if not specified.exists():
            raise ConfigError(f"Specified config file not found: {config_path}")
        return specified

    search_paths = [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.home() / ".config" / "farmatag" / "config.yaml",
    ]
    for path in search_paths:
        if path.exists():
            logger.info(f"Using config: {path}")
            return path

    logger.debug("No config file found, using defaults")
    return None


def read_config_file(config_file: Path) -> dict:
    """
    Read a YAML config file.

    Supports pointer files: if the file only contains `use: path/to/config.yaml`,
    that file is loaded instead (resolved relative to the pointer file).
    """
    try:
        with open(config_file, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if isinstance(config, dict) and list(config.keys()) == ["use"]:
            pointer_path = Path(config_file).parent / config["use"]
            logger.info(f"Config pointer: {config_file} -> {pointer_path}")
            with open(pointer_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}

    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config root must be a mapping: {config_file}")
    return config


def load_config_with_env(config: dict) -> dict:
    """
    Apply environment variable overrides to config.

    Args:
        config: Base configuration dictionary

    Returns:
        Configuration with environment variables applied
    """
    overrides = (
        (ENV_SCAN_COOLDOWN, "scan", "cooldown_seconds", float),
        (ENV_MAX_ZOOM_ADJUSTMENTS, "zoom", "max_adjustments", int),
    )
    for env_name, section, key, convert in overrides:
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            value = convert(raw)
        except ValueError as e:
            raise ConfigError(f"{env_name}={raw!r} is not a valid {convert.__name__}") from e
        logger.info(f"Using {section}.{key} from environment: {env_name}")
        section_config = config.get(section)
        if section_config is None:
            section_config = config[section] = {}
        elif not isinstance(section_config, dict):
            raise ConfigError(f"Cannot apply {env_name}: '{section}' must be a mapping")
        section_config[key] = value
    return config


def validate_config(config: dict) -> ValidationResult:
    """
    Validate a raw config dict without raising.

    Returns:
        ValidationResult with errors, warnings and the parsed config if valid
    """
    result = ValidationResult(valid=True)
    try:
        result.config = validate_config_pydantic(config)
    except ValidationError as e:
        result.valid = False
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "<root>"
            result.errors.append(f"{location}: {error['msg']}")
        return result

    parsed = result.config
    if parsed.zoom.max_adjustments == 0:
        result.warnings.append("zoom.max_adjustments is 0 - automatic zoom is disabled")
    if parsed.focus.max_retries == 0:
        result.warnings.append("focus.max_retries is 0 - focus adjustments are disabled")
    if parsed.focus.blur_correction and not parsed.focus.manual_lens_positions:
        result.warnings.append(
            "focus.blur_correction is on but manual_lens_positions is empty"
        )
    if not parsed.guidance.no_detection_hints:
        result.warnings.append("guidance.no_detection_hints is empty - no hints will be shown")
    return result


def load_config(config_path: str | None = None) -> ScannerConfig:
    """
    Load, override and validate configuration.

    Args:
        config_path: Explicit YAML path, or None to search standard locations

    Returns:
        Validated ScannerConfig

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    config_file = find_config_file(config_path)
    raw: dict[str, Any] = read_config_file(config_file) if config_file else {}
    raw = load_config_with_env(raw)

    result = validate_config(raw)
    if not result.valid:
        raise ConfigError("Invalid configuration:\n  " + "\n  ".join(result.errors))
    for warning in result.warnings:
        logger.warning(warning)

    logger.info(f"Configuration loaded from {config_file or 'defaults'}")
    return result.config


def print_validation_result(result: ValidationResult) -> None:
    """Print validation result to the console."""
    # Disable colors if not a TTY
    if not sys.stdout.isatty():
        Colors.disable()
    if result.valid:
        print(f"{Colors.GREEN}Configuration valid{Colors.RESET}")
    else:
        print(f"{Colors.RED}Configuration invalid{Colors.RESET}")
    for error in result.errors:
        print(f"  {Colors.RED}error{Colors.RESET}   {error}")
    for warning in result.warnings:
        print(f"  {Colors.YELLOW}warning{Colors.RESET} {warning}")
