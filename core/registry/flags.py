"""
Registry - Message Flag Policy
The six most-significant bits of a message are flags with a validity policy.

Bit layout (field width W = FIELD_BITS = 255, little-endian bit order):
    flag1..flag6 = bits[W-6 .. W-1]   (249..254 for W = 255)

Policy (all must hold):
    1. flag1 => not (flag2 or flag3 or flag4 or flag5 or flag6)
    2. flag2 => flag3
    3. flag4 => not (flag5 or flag6)

The predicate is pure and total over field elements, so the same check can
run inside a proof circuit or in host code.
"""
from __future__ import annotations

from typing import Sequence

from core.crypto.field import FIELD_BITS, from_bits, is_field_element, to_bits
from core.schemas.errors import FormatException

FLAG_COUNT = 6

# Indices of flag1..flag6 in the little-endian decomposition
FLAG_BIT_INDICES: tuple[int, ...] = tuple(range(FIELD_BITS - FLAG_COUNT, FIELD_BITS))

RULE_EXCLUSIVE = "flag1 must be the only flag set"
RULE_DEPENDENCY = "flag2 requires flag3"
RULE_EXCLUSION_PAIR = "flag4 forbids flag5 and flag6"

Flags = tuple[bool, bool, bool, bool, bool, bool]


def extract_flags(message: int) -> Flags:
    """
    Read flag1..flag6 from a message.

    Raises:
        FormatException: If message is not a field element
    """
    if not is_field_element(message):
        raise FormatException(f"Message is not a field element: {message!r}")
    bits = to_bits(message)
    return tuple(bits[i] for i in FLAG_BIT_INDICES)  # type: ignore[return-value]


def flag_violations(flags: Sequence[bool]) -> list[str]:
    """Names of the policy rules `flags` breaks (empty when valid)."""
    if len(flags) != FLAG_COUNT:
        raise ValueError(f"Expected {FLAG_COUNT} flags, got {len(flags)}")
    f1, f2, f3, f4, f5, f6 = (bool(f) for f in flags)

    violations = []
    if f1 and (f2 or f3 or f4 or f5 or f6):
        violations.append(RULE_EXCLUSIVE)
    if f2 and not f3:
        violations.append(RULE_DEPENDENCY)
    if f4 and (f5 or f6):
        violations.append(RULE_EXCLUSION_PAIR)
    return violations


def flags_valid(message: int) -> bool:
    """Boolean form of check_flags. Non-field values are never valid."""
    if not is_field_element(message):
        return False
    return not flag_violations(extract_flags(message))


def check_flags(message: int) -> None:
    """
    Enforce the flag policy on a message.

    Raises:
        FormatException: If the message is not a field element or any
                        policy rule is violated
    """
    flags = extract_flags(message)
    violations = flag_violations(flags)
    if violations:
        raise FormatException(
            f"Message flags violate policy: {'; '.join(violations)}",
            flags=flags,
            details={"violations": violations},
        )


def with_flags(message: int, flags: Sequence[bool]) -> int:
    """
    Return `message` with its six flag bits replaced by `flags`.

    Raises:
        ValueError: If the result falls outside the field (possible when
                   flag6 is set on a large payload)
    """
    if len(flags) != FLAG_COUNT:
        raise ValueError(f"Expected {FLAG_COUNT} flags, got {len(flags)}")
    bits = to_bits(message)
    for index, flag in zip(FLAG_BIT_INDICES, flags):
        bits[index] = bool(flag)
    return from_bits(bits)


def parse_flags(text: str) -> Flags:
    """
    Parse a flag string such as "100000" (flag1 first) or "1,0,0,0,0,0".

    Raises:
        ValueError: If the string is not six 0/1 digits
    """
    digits = text.replace(",", "").replace(" ", "")
    if len(digits) != FLAG_COUNT or any(d not in "01" for d in digits):
        raise ValueError(f"Flags must be {FLAG_COUNT} binary digits, got {text!r}")
    return tuple(d == "1" for d in digits)  # type: ignore[return-value]


def format_flags(flags: Sequence[bool]) -> str:
    return "".join("1" if f else "0" for f in flags)


__all__ = [
    "FLAG_COUNT",
    "FLAG_BIT_INDICES",
    "RULE_EXCLUSIVE",
    "RULE_DEPENDENCY",
    "RULE_EXCLUSION_PAIR",
    "Flags",
    "extract_flags",
    "flag_violations",
    "flags_valid",
    "check_flags",
    "with_flags",
    "parse_flags",
    "format_flags",
]
