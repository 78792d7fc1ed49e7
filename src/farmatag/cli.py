"""
FarmaTag Scanner CLI

Offline tools around the scanner core:
  --decode PAYLOAD  Decode a GS1 payload and print the fields as JSON
  --replay FILE     Run a recorded scanning session on a virtual clock
  --validate        Check configuration validity
"""

import argparse
import json
import logging
import sys

from .config import (
    ConfigError,
    find_config_file,
    load_config,
    load_config_with_env,
    print_validation_result,
    read_config_file,
    validate_config,
)
from .core import classify, decode_payload
from .models import SetFocusMode, SetZoom
from .replay import load_replay_script, run_replay
from .utils.constants import (
    ENV_MAX_ZOOM_ADJUSTMENTS,
    ENV_SCAN_COOLDOWN,
    GS1_GROUP_SEPARATOR,
)

logger = logging.getLogger(__name__)


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        quiet: If True, only show warnings and errors
        verbose: If True, show debug output (wins over quiet)
    """
    level = logging.WARNING if quiet else logging.INFO
    if verbose:
        level = logging.DEBUG

    # Custom formatter with shorter module names
    class ShortNameFormatter(logging.Formatter):
        def format(self, record):
            record.name = record.name.replace("farmatag.", "ft.")
            return super().format(record)

    handler = logging.StreamHandler()
    handler.setFormatter(
        ShortNameFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="farmatag",
        description="FarmaTag Scanner - GS1 Data Matrix decoding and camera guidance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  farmatag --decode "01095011015300081725123110LOT42"
  farmatag --decode "0109501101530008 10LOT42<GS>21SN7" --gs "<GS>" --confidence 0.97
  farmatag --replay session.yaml
  farmatag --validate -c farmatag.yaml

Environment Variables:
  {ENV_SCAN_COOLDOWN} - Override scan.cooldown_seconds
  {ENV_MAX_ZOOM_ADJUSTMENTS} - Override zoom.max_adjustments
        """,
    )

    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--decode", metavar="PAYLOAD", help="Decode a GS1 payload")
    action.add_argument("--replay", metavar="FILE", help="Replay a recorded session (YAML)")
    action.add_argument(
        "--validate", action="store_true", help="Validate configuration and exit"
    )

    parser.add_argument(
        "--gs",
        metavar="TOKEN",
        help="Text token to treat as the GS1 group separator in --decode input",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        help="With --decode: also classify quality at this detector confidence",
    )
    parser.add_argument(
        "--area",
        type=float,
        default=0.01,
        help="With --confidence: bounding-box area fraction (default: 0.01)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to config file (default: ./farmatag.yaml if present)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Quiet mode - only show warnings and errors",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")

    return parser.parse_args(argv)


def run_decode(payload: str, gs_token: str | None, confidence: float | None, area: float) -> int:
    """Decode a payload and print its fields."""
    if gs_token:
        payload = payload.replace(gs_token, GS1_GROUP_SEPARATOR)

    output: dict = {"fields": decode_payload(payload)}
    if confidence is not None:
        output["quality"] = classify(confidence, len(payload), area).name

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def run_validate(config_path: str | None) -> int:
    """Validate configuration and print the result."""
    try:
        config_file = find_config_file(config_path)
        raw = read_config_file(config_file) if config_file else {}
        raw = load_config_with_env(raw)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    print(f"Config: {config_file or '(built-in defaults)'}")
    result = validate_config(raw)
    print_validation_result(result)
    return 0 if result.valid else 1


def run_replay_command(path: str, config_path: str | None, as_json: bool) -> int:
    """Replay a recorded session and print what it produced."""
    try:
        config = load_config(config_path)
        script = load_replay_script(path)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    report = run_replay(script, config)

    if as_json:
        print(
            json.dumps(
                {
                    "results": [r.to_dict() for r in report.results],
                    "messages": report.messages,
                    "commands": [
                        {"t": t, "command": type(c).__name__, **_command_args(c)}
                        for t, c in report.commands
                    ],
                    "stats": report.stats,
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return 0

    print("=" * 70)
    print(f"REPLAY: {path}")
    print("=" * 70)
    for result in report.results:
        auth = " [hologram]" if result.authenticated else ""
        print(f"[{result.timestamp:7.2f}] SCAN  {result.quality.name:<9}{auth} {result.payload}")
        for name, value in result.fields.items():
            print(f"            {name:<20} {value}")
    print()
    for t, command in report.commands:
        print(f"[{t:7.2f}] CAMERA {_describe(command)}")
    print()
    for message in report.messages:
        print(f"  - {message}")
    print()
    print(f"Stats: {report.stats}")
    return 0


def _command_args(command) -> dict:
    if isinstance(command, SetZoom):
        return {"factor": round(command.factor, 3), "ramp_rate": command.ramp_rate}
    if isinstance(command, SetFocusMode):
        return {
            "mode": command.mode.value,
            "point": command.point,
            "range": command.range_restriction.value,
        }
    return {k: v for k, v in vars(command).items()}


def _describe(command) -> str:
    args = ", ".join(f"{k}={v}" for k, v in _command_args(command).items())
    return f"{type(command).__name__}({args})"


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    # Decode output is for piping; keep logs out of it unless asked
    setup_logging(quiet=args.quiet or args.decode is not None or args.json, verbose=args.verbose)

    if args.decode is not None:
        code = run_decode(args.decode, args.gs, args.confidence, args.area)
    elif args.validate:
        code = run_validate(args.config)
    else:
        code = run_replay_command(args.replay, args.config, args.json)

    sys.exit(code)


if __name__ == "__main__":
    main()
