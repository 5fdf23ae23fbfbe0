"""
CLI Status Command

Show the committed registry state and the mirrored records.

Usage:
    sealreg status [--state DIR] [--records] [--json]
"""

from __future__ import annotations

from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from core.crypto.hashing import to_hex

from sealreg_cli.state import EXIT_SUCCESS, open_client, print_json, report_error, state_dir


@dataclass
class StatusSummary:
    """Registry status for CLI output."""
    state_dir: str = ""
    initiated: bool = False
    admin: str | None = None
    storage_root: str = ""
    store_root: str = ""
    num_of_addresses: int = 0
    max_addresses: int = 0
    num_of_messages: int = 0
    events: int = 0
    records: list[dict[str, Any]] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return self.storage_root == self.store_root

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["in_sync"] = self.in_sync
        if not d["records"]:
            del d["records"]
        return d


def status_cmd(args: Namespace) -> int:
    try:
        client = open_client(args)
    except Exception as e:
        if getattr(args, "debug", False):
            raise
        return report_error(e, args.json)

    registry, store = client.registry, client.store
    summary = StatusSummary(
        state_dir=str(state_dir(args)),
        initiated=registry.initiated,
        admin=registry.admin,
        storage_root=to_hex(registry.storage_root),
        store_root=to_hex(store.get_root()),
        num_of_addresses=registry.num_of_addresses,
        max_addresses=registry.max_addresses,
        num_of_messages=registry.num_of_messages,
        events=len(registry.events),
    )
    if args.records:
        summary.records = [
            {"index": index, "address": record.address, "deposited": record.has_message}
            for index, record in store.records()
        ]

    if args.json:
        print_json(summary.to_dict())
        return EXIT_SUCCESS

    print(f"state_dir: {summary.state_dir}")
    print(f"initiated: {str(summary.initiated).lower()}")
    print(f"admin: {summary.admin or '-'}")
    print(f"storage_root: {summary.storage_root}")
    print(f"in_sync: {str(summary.in_sync).lower()}")
    print(f"addresses: {summary.num_of_addresses}/{summary.max_addresses}")
    print(f"messages: {summary.num_of_messages}")
    if summary.records:
        print(f"\nrecords ({len(summary.records)}):")
        for r in summary.records:
            marker = "✓" if r["deposited"] else " "
            print(f"  [{marker}] {r['index']:4d} {r['address']}")
    return EXIT_SUCCESS
