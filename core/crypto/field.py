"""
Crypto - Prime Field Elements
Messages are elements of the Pallas base field, handled as plain ints.

This module provides:
- The field modulus and its bit/byte widths
- Range checks and fixed-width big-endian encoding
- Canonical little-endian bit decomposition (and its inverse)
- Uniform random element generation

Determinism Notes:
- to_bits always returns exactly FIELD_BITS entries, least significant first
- from_bits rejects anything that does not encode a canonical element
"""
from __future__ import annotations

import secrets
from typing import Sequence

# Pallas base field: p = 2^254 + 45560315531419706090280762371685220353
FIELD_MODULUS: int = 0x40000000000000000000000000000000224698FC094CF91B992D30ED00000001

# Width of the canonical bit decomposition (255 for Pallas)
FIELD_BITS: int = FIELD_MODULUS.bit_length()

# Width of the fixed-size big-endian encoding
FIELD_BYTES: int = 32


def is_field_element(value: int) -> bool:
    """Check whether value is a canonical field element (0 <= value < p)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < FIELD_MODULUS


def require_field_element(value: int, name: str = "value") -> int:
    """
    Return value unchanged if it is a canonical field element.

    Raises:
        ValueError: If value is not an int in [0, FIELD_MODULUS)
    """
    if not is_field_element(value):
        raise ValueError(f"{name} must be an integer in [0, FIELD_MODULUS), got {value!r}")
    return value


def field_to_bytes(value: int) -> bytes:
    """Encode a field element as FIELD_BYTES big-endian bytes."""
    require_field_element(value)
    return value.to_bytes(FIELD_BYTES, "big")


def field_from_bytes(data: bytes) -> int:
    """
    Decode a FIELD_BYTES big-endian encoding.

    Raises:
        ValueError: If the length is wrong or the value is not canonical
    """
    if len(data) != FIELD_BYTES:
        raise ValueError(f"Field encoding must be {FIELD_BYTES} bytes, got {len(data)}")
    return require_field_element(int.from_bytes(data, "big"))


def to_bits(value: int, width: int = FIELD_BITS) -> list[bool]:
    """
    Decompose a field element into its little-endian bit sequence.

    Args:
        value: Canonical field element
        width: Number of bits to return (defaults to the field width)

    Returns:
        List of exactly `width` booleans, bits[0] being the least significant

    Example:
        >>> to_bits(6, width=4)
        [False, True, True, False]
    """
    require_field_element(value)
    if value >> width:
        raise ValueError(f"Value does not fit in {width} bits")
    return [bool((value >> i) & 1) for i in range(width)]


def from_bits(bits: Sequence[bool]) -> int:
    """
    Recompose a little-endian bit sequence into a field element.

    Raises:
        ValueError: If more than FIELD_BITS bits are given or the result
                   is not below the modulus
    """
    if len(bits) > FIELD_BITS:
        raise ValueError(f"At most {FIELD_BITS} bits allowed, got {len(bits)}")
    value = 0
    for i, bit in enumerate(bits):
        if bit:
            value |= 1 << i
    if value >= FIELD_MODULUS:
        raise ValueError("Bit sequence encodes a value outside the field")
    return value


def random_field() -> int:
    """Return a uniformly random field element."""
    return secrets.randbelow(FIELD_MODULUS)


__all__ = [
    "FIELD_MODULUS",
    "FIELD_BITS",
    "FIELD_BYTES",
    "is_field_element",
    "require_field_element",
    "field_to_bytes",
    "field_from_bytes",
    "to_bits",
    "from_bits",
    "random_field",
]
