"""
CLI Keygen Command

Print fresh random addresses for use as admin or participant identities.

Usage:
    sealreg keygen [--count N] [--json]
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.schemas.records import generate_address

from sealreg_cli.state import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, print_json


def keygen_cmd(args: Namespace) -> int:
    if args.count < 1:
        print("Error: --count must be at least 1", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    addresses = [generate_address() for _ in range(args.count)]
    if args.json:
        print_json(addresses)
    else:
        for address in addresses:
            print(address)
    return EXIT_SUCCESS
