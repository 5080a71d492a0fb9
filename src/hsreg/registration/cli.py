"""
Command-line interface for registration runs.

Provides the ``hsreg`` command.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from hsreg.registration.config import RegistrationConfig
from hsreg.registration.pipeline import run_registration


def _parse_value(raw: str) -> Any:
    """Parse CLI override values."""
    lower = raw.lower()
    if lower == "true":
        return True
    if lower == "false":
        return False

    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass

    # Optional JSON parsing for lists/dicts
    if raw.startswith("[") or raw.startswith("{"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


def _parse_overrides(params: Optional[list[str]]) -> Dict[str, Any]:
    """Parse KEY=VALUE CLI overrides."""
    overrides: Dict[str, Any] = {}
    if not params:
        return overrides

    for item in params:
        if "=" not in item:
            print(f"Warning: ignoring malformed override '{item}' (expected KEY=VALUE)")
            continue
        key, value = item.split("=", 1)
        overrides[key] = _parse_value(value)
    return overrides


def cmd_run(args: argparse.Namespace) -> None:
    """Handle the ``run`` subcommand."""
    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: configuration file not found: {config_path}")
        sys.exit(1)

    config = RegistrationConfig.from_file(config_path)
    overrides = _parse_overrides(args.of_params)
    run_registration(config, overrides or None)


def cmd_estimate(args: argparse.Namespace) -> None:
    """Handle the ``estimate`` subcommand."""
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: input file not found: {input_path}")
        sys.exit(1)

    config = RegistrationConfig(
        input_file=input_path,
        reference_dynamic=args.reference,
        current_dynamic=args.current,
        slice_index=args.slice,
        output_file=args.output,
        figure_file=args.figure,
    )
    overrides = _parse_overrides(args.of_params)
    if args.alpha is not None:
        overrides["alpha"] = args.alpha
    if args.levels is not None:
        overrides["levels"] = args.levels
    run_registration(config, overrides or None)


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Horn-Schunck registration of image series",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a registration described by a config file
  hsreg run --config abdomen.toml

  # Override flow options from the CLI
  hsreg run --config abdomen.toml --of-params alpha=0.05 levels=2

  # Register dynamic 6 onto dynamic 3 of a raw series
  hsreg estimate data/abdomen2D.dat --reference 3 --current 6 --output result.h5
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    run_parser = subparsers.add_parser("run", help="Run a configured registration")
    run_parser.add_argument(
        "--config",
        "-c",
        required=True,
        help="Path to config file (.toml/.yaml/.yml)",
    )
    run_parser.add_argument(
        "--of-params",
        nargs="*",
        metavar="KEY=VALUE",
        help="Override OFOptions parameters",
    )
    run_parser.set_defaults(func=cmd_run)

    est_parser = subparsers.add_parser("estimate", help="Register two dynamics of a series")
    est_parser.add_argument("input", help="Path to the image series (.dat)")
    est_parser.add_argument("--reference", "-r", type=int, default=3,
                            help="0-based reference dynamic (default: 3)")
    est_parser.add_argument("--current", "-m", type=int, default=6,
                            help="0-based current dynamic (default: 6)")
    est_parser.add_argument("--slice", type=int, default=0, help="0-based slice index (default: 0)")
    est_parser.add_argument("--alpha", "-a", type=float, help="Smoothness weight")
    est_parser.add_argument("--levels", "-l", type=int, help="Number of pyramid levels")
    est_parser.add_argument("--output", "-o", default="registration.h5",
                            help="Result file (.h5/.hdf5/.tif)")
    est_parser.add_argument("--figure", help="Optional image file for the result figure")
    est_parser.add_argument(
        "--of-params",
        nargs="*",
        metavar="KEY=VALUE",
        help="Override OFOptions parameters",
    )
    est_parser.set_defaults(func=cmd_estimate)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)
    args.func(args)


if __name__ == "__main__":
    main()
