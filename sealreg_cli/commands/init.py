"""
CLI Init Command

Create an empty record store, initialize the registry with its root and
record the admin identity.

Usage:
    sealreg init --admin ADDRESS [--state DIR] [--json]
"""

from __future__ import annotations

import logging
from argparse import Namespace

from core.crypto.hashing import to_hex

from sealreg_cli.state import (
    EXIT_SUCCESS,
    has_state,
    new_client,
    open_client,
    print_json,
    report_error,
    save_client,
    state_dir,
)


logger = logging.getLogger(__name__)


def init_cmd(args: Namespace) -> int:
    """
    Execute the init command.

    Running it against an existing state directory goes through the
    registry, which rejects the second initialization.
    """
    directory = state_dir(args)
    try:
        client = open_client(args) if has_state(directory) else new_client(args)
        client.initialize(args.admin)
        save_client(args, client)
    except Exception as e:
        if getattr(args, "debug", False):
            raise
        return report_error(e, args.json)

    registry = client.registry
    logger.info(f"Initialized registry in {directory}")
    if args.json:
        print_json({
            "ok": True,
            "state_dir": str(directory),
            "admin": registry.admin,
            "storage_root": to_hex(registry.storage_root),
            "tree_height": client.store.height,
            "max_addresses": registry.max_addresses,
        })
    else:
        print(f"state_dir: {directory}")
        print(f"admin: {registry.admin}")
        print(f"storage_root: {to_hex(registry.storage_root)}")
        print(f"capacity: {registry.max_addresses} addresses ({client.store.capacity} leaves)")
    return EXIT_SUCCESS
