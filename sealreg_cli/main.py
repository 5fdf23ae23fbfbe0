"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m sealreg_cli keygen [--count N]
    python -m sealreg_cli init --admin ADDRESS
    python -m sealreg_cli enroll ADDRESS --as ADMIN
    python -m sealreg_cli deposit --as ADDRESS (--message VALUE | --flags BITS [--payload VALUE])
    python -m sealreg_cli status [--records]
    python -m sealreg_cli flags VALUE
    python -m sealreg_cli config --init

Environment Variables:
    SEALREG_STATE_DIR           State directory (default: ./sealreg-state)
    SEALREG_RUNTIME_CONFIG      YAML file with tree/registry/client settings
    SEALREG_LOG_LEVEL           Log level (default: INFO)
    SEALREG_TREE_HEIGHT         Record tree height (default: 10)
    SEALREG_MAX_ADDRESSES       Enrollment limit (default: 100)
    SEALREG_MAX_RETRIES         Retries on stale witnesses (default: 0)
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import RuntimeConfig, set_default_config

from sealreg_cli import __version__
from sealreg_cli.commands import deposit, enroll, flags, init, keygen, status
from sealreg_cli.config import CLIConfig, get_default_config_template, load_config
from sealreg_cli.state import EXIT_RUNTIME_ERROR, EXIT_SUCCESS


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def load_runtime_config(config: CLIConfig) -> RuntimeConfig:
    """Runtime settings from the configured YAML file (if any) plus env overrides."""
    if config.runtime_config:
        return RuntimeConfig.from_yaml(config.runtime_config).with_env_overrides()
    return RuntimeConfig.from_env()


def _add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="sealreg",
        description="Sealed message registry - enroll eligible addresses and deposit one-time messages.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./sealreg.json or ~/.config/sealreg/config.json)",
    )
    parser.add_argument(
        "--state", "-s",
        type=str,
        default=None,
        help="State directory (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Show tracebacks instead of error summaries",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- keygen command ---
    keygen_parser = subparsers.add_parser(
        "keygen",
        help="Generate random addresses",
    )
    keygen_parser.add_argument("--count", "-n", type=int, default=1, help="Number of addresses")
    _add_json_flag(keygen_parser)
    keygen_parser.set_defaults(func=keygen.keygen_cmd)

    # --- init command ---
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a registry over an empty record tree",
        description="Create the state directory and record the admin identity. Can only succeed once.",
    )
    init_parser.add_argument("--admin", type=str, required=True, help="Admin address")
    _add_json_flag(init_parser)
    init_parser.set_defaults(func=init.init_cmd)

    # --- enroll command ---
    enroll_parser = subparsers.add_parser(
        "enroll",
        help="Enroll an eligible address (admin only)",
    )
    enroll_parser.add_argument("address", type=str, help="Address to enroll")
    enroll_parser.add_argument("--as", dest="caller", type=str, required=True, help="Caller identity (the admin)")
    _add_json_flag(enroll_parser)
    enroll_parser.set_defaults(func=enroll.enroll_cmd)

    # --- deposit command ---
    deposit_parser = subparsers.add_parser(
        "deposit",
        help="Deposit the one message an enrolled address is allowed",
    )
    deposit_parser.add_argument("--as", dest="caller", type=str, required=True, help="Caller identity (the enrolled address)")
    message_group = deposit_parser.add_mutually_exclusive_group(required=True)
    message_group.add_argument("--message", "-m", type=str, default=None, help="Message value (decimal or 0x hex)")
    message_group.add_argument("--flags", "-f", type=str, default=None, help="Flag pattern, flag1 first (e.g. 100000)")
    deposit_parser.add_argument("--payload", type=str, default=None, help="Payload under --flags (default: random)")
    _add_json_flag(deposit_parser)
    deposit_parser.set_defaults(func=deposit.deposit_cmd)

    # --- status command ---
    status_parser = subparsers.add_parser(
        "status",
        help="Show the committed registry state",
    )
    status_parser.add_argument("--records", action="store_true", default=False, help="List mirrored records")
    _add_json_flag(status_parser)
    status_parser.set_defaults(func=status.status_cmd)

    # --- flags command ---
    flags_parser = subparsers.add_parser(
        "flags",
        help="Check a message value against the flag policy",
    )
    flags_parser.add_argument("value", type=str, help="Message value (decimal or 0x hex)")
    _add_json_flag(flags_parser)
    flags_parser.set_defaults(func=flags.flags_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Print a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show the effective configuration",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        print(get_default_config_template())
        return EXIT_SUCCESS

    if args.show:
        import json
        print(json.dumps({
            "cli": args.cli_config.to_dict(),
            "runtime": args.runtime_config.to_dict(),
        }, indent=2))
        return EXIT_SUCCESS

    print("Use --init to print a template or --show to display the effective configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=rejected by the registry)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
        runtime_config = load_runtime_config(config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    set_default_config(runtime_config)
    args.cli_config = config
    args.runtime_config = runtime_config
    args.debug = args.debug or runtime_config.debug
    if config.default_output_format == "json" and hasattr(args, "json"):
        args.json = True

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
