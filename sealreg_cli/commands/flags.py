"""
CLI Flags Command

Check a message value against the flag policy without touching any state.

Usage:
    sealreg flags VALUE [--json]

Exit code 0 when the value is acceptable, 2 when it violates the policy.
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.crypto.field import is_field_element
from core.registry.flags import FLAG_BIT_INDICES, extract_flags, flag_violations, format_flags

from sealreg_cli.commands.deposit import parse_int
from sealreg_cli.state import EXIT_REJECTED, EXIT_RUNTIME_ERROR, EXIT_SUCCESS, print_json


def flags_cmd(args: Namespace) -> int:
    try:
        value = parse_int(args.value)
    except ValueError:
        print(f"Error: not an integer: {args.value}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if not is_field_element(value):
        if args.json:
            print_json({"valid": False, "violations": ["value is outside the field"]})
        else:
            print("valid: false")
            print("  ✗ value is outside the field")
        return EXIT_REJECTED

    flags = extract_flags(value)
    violations = flag_violations(flags)

    if args.json:
        print_json({
            "flags": format_flags(flags),
            "bit_indices": list(FLAG_BIT_INDICES),
            "valid": not violations,
            "violations": violations,
        })
    else:
        print(f"flags: {format_flags(flags)} (bits {FLAG_BIT_INDICES[0]}..{FLAG_BIT_INDICES[-1]})")
        print(f"valid: {str(not violations).lower()}")
        for v in violations:
            print(f"  ✗ {v}")
    return EXIT_REJECTED if violations else EXIT_SUCCESS
