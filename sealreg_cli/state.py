"""
CLI - Shared State Helpers

Loading/saving the state directory and reporting registry errors,
shared by every subcommand.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from core.config.runtime import RuntimeConfig, get_default_config
from core.merkle.record_store import RecordStore
from core.registry.client import RegistryClient
from core.registry.persistence import MANIFEST_FILE, load_registry_dir, save_registry_dir
from core.registry.registry import Registry
from core.schemas.errors import RegistryException, StateIOException


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_REJECTED = 2


def state_dir(args: Namespace) -> Path:
    """State directory: --state, then the runtime store location, then the CLI config."""
    if getattr(args, "state", None):
        return Path(args.state)
    location = runtime_config(args).store.location
    if location:
        return Path(location)
    return Path(args.cli_config.state_dir)


def runtime_config(args: Namespace) -> RuntimeConfig:
    return getattr(args, "runtime_config", None) or get_default_config()


def has_state(directory: Path) -> bool:
    return (directory / MANIFEST_FILE).exists()


def open_client(args: Namespace) -> RegistryClient:
    """
    Load the registry and store from the state directory.

    Raises:
        StateIOException: If there is no usable state
    """
    directory = state_dir(args)
    if not has_state(directory):
        raise StateIOException(
            f"No registry state in {directory}; run 'sealreg init' first",
            path=str(directory),
        )
    config = runtime_config(args)
    registry, store = load_registry_dir(directory, config)
    return RegistryClient(registry, store, config)


def new_client(args: Namespace) -> RegistryClient:
    """Fresh, uninitialized registry over an empty store."""
    config = runtime_config(args)
    return RegistryClient(Registry(config), RecordStore(config.tree.height), config)


def save_client(args: Namespace, client: RegistryClient) -> Path:
    return save_registry_dir(client.registry, client.store, state_dir(args))


def report_error(error: Exception, output_json: bool) -> int:
    """
    Print an error and map it to an exit code.

    Registry rejections exit with EXIT_REJECTED; state problems and
    anything else with EXIT_RUNTIME_ERROR.
    """
    if isinstance(error, RegistryException):
        exit_code = EXIT_RUNTIME_ERROR if isinstance(error, StateIOException) else EXIT_REJECTED
        if output_json:
            print_json({"ok": False, "error": error.to_error_model().model_dump()})
        else:
            print(f"Error [{error.code}]: {error.message}", file=sys.stderr)
            if error.retryable:
                print("  (refresh the witness and retry)", file=sys.stderr)
        return exit_code

    if output_json:
        print_json({"ok": False, "error": {"code": "RUNTIME_ERROR", "message": str(error)}})
    else:
        print(f"Error: {error}", file=sys.stderr)
    return EXIT_RUNTIME_ERROR


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))
