"""
CLI Enroll Command

Enroll an eligible address. Only the admin recorded at init may do this.

Usage:
    sealreg enroll ADDRESS --as ADMIN [--state DIR] [--json]
"""

from __future__ import annotations

from argparse import Namespace

from core.crypto.hashing import to_hex

from sealreg_cli.state import EXIT_SUCCESS, open_client, print_json, report_error, save_client


def enroll_cmd(args: Namespace) -> int:
    try:
        client = open_client(args)
        index = client.enroll(args.caller, args.address)
        save_client(args, client)
    except Exception as e:
        if getattr(args, "debug", False):
            raise
        return report_error(e, args.json)

    registry = client.registry
    if args.json:
        print_json({
            "ok": True,
            "address": client.store.get_record(index).address,
            "index": index,
            "num_of_addresses": registry.num_of_addresses,
            "storage_root": to_hex(registry.storage_root),
        })
    else:
        print(f"enrolled: {client.store.get_record(index).address}")
        print(f"index: {index}")
        print(f"num_of_addresses: {registry.num_of_addresses}/{registry.max_addresses}")
        print(f"storage_root: {to_hex(registry.storage_root)}")
    return EXIT_SUCCESS
