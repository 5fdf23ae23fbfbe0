"""
CLI Deposit Command

Deposit the one message an enrolled address is allowed.

The message is given either verbatim (--message, decimal or 0x hex) or
built from a flag pattern (--flags "100000", flag1 first) over a payload
(--payload, random when omitted).

Usage:
    sealreg deposit --as ADDRESS --message VALUE [--json]
    sealreg deposit --as ADDRESS --flags 011000 [--payload VALUE] [--json]
"""

from __future__ import annotations

import secrets
from argparse import Namespace

from core.crypto.field import FIELD_BITS
from core.crypto.hashing import to_hex
from core.registry.flags import FLAG_COUNT, parse_flags, with_flags

from sealreg_cli.state import EXIT_SUCCESS, open_client, print_json, report_error, save_client

# Random payloads stay far enough below the flag bits that any flag
# pattern without flag6 lands inside the field
_RANDOM_PAYLOAD_BITS = FIELD_BITS - FLAG_COUNT - 1


def parse_int(value: str) -> int:
    """Parse a decimal or 0x-prefixed hex integer."""
    return int(value, 0)


def build_message(args: Namespace) -> int:
    """
    Raises:
        ValueError: If neither or both of --message/--flags are usable, or
                   the result is not a field element
    """
    if args.message is not None:
        return parse_int(args.message)
    flags = parse_flags(args.flags)
    if args.payload is not None:
        payload = parse_int(args.payload)
    else:
        payload = secrets.randbits(_RANDOM_PAYLOAD_BITS) | 1
    return with_flags(payload, flags)


def deposit_cmd(args: Namespace) -> int:
    try:
        message = build_message(args)
        client = open_client(args)
        event = client.deposit(args.caller, message)
        save_client(args, client)
    except Exception as e:
        if getattr(args, "debug", False):
            raise
        return report_error(e, args.json)

    registry = client.registry
    if args.json:
        print_json({
            "ok": True,
            "event": event.model_dump(mode="json"),
            "message": to_hex(message.to_bytes(32, "big")),
            "num_of_messages": registry.num_of_messages,
            "storage_root": to_hex(registry.storage_root),
        })
    else:
        print(f"{event.kind}: {event.count}")
        print(f"message: {to_hex(message.to_bytes(32, 'big'))}")
        print(f"storage_root: {to_hex(registry.storage_root)}")
    return EXIT_SUCCESS
