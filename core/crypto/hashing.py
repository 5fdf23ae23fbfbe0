"""
Crypto - Hashing
SHA-256 digests for record leaves, tree nodes and persisted state.

- Leaves: sha256(address || message), built in core.schemas.records
- Nodes: sha256(left || right), see hash_concat
- State digests: sha256 of canonical JSON, see hash_canonical

Roots and digests travel as 0x-prefixed lowercase hex outside of memory.
"""
from __future__ import annotations

import hashlib
from typing import Any

from core.schemas.canonical import dumps_canonical

DIGEST_SIZE: int = 32


def sha256(data: bytes) -> bytes:
    """
    Example:
        >>> sha256(b"").hex()[:16]
        'e3b0c44298fc1c14'
    """
    return hashlib.sha256(data).digest()


def hash_bytes(data: bytes) -> bytes:
    """Alias for sha256()."""
    return sha256(data)


def hash_canonical(obj: Any) -> bytes:
    """
    Digest of an object's canonical JSON text (UTF-8).

    Only for persisted-state digests; tree leaves hash the fixed-width
    binary record encoding instead.

    Raises:
        CanonicalizationException: If obj has no canonical form
    """
    return sha256(dumps_canonical(obj).encode("utf-8"))


def hash_concat(left: bytes, right: bytes) -> bytes:
    """Parent node of two children: sha256(left || right)."""
    return sha256(left + right)


def to_hex(data: bytes) -> str:
    """
    Example:
        >>> to_hex(bytes(2))
        '0x0000'
    """
    return "0x" + data.hex()


def from_hex(text: str) -> bytes:
    """
    Decode 0x-prefixed hex.

    Raises:
        ValueError: If the 0x prefix is missing, the digit count is odd, or a
                   character is not a hex digit
    """
    if not text.startswith("0x"):
        raise ValueError(f"Hex string must start with '0x' prefix, got: {text[:10]}...")

    digits = text[2:]
    if len(digits) % 2:
        raise ValueError(f"Hex string must have even length after 0x prefix, got {len(digits)} digits")

    try:
        return bytes.fromhex(digits)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in {text[:10]}...: {e}") from e


__all__ = [
    "DIGEST_SIZE",
    "sha256",
    "hash_bytes",
    "hash_canonical",
    "hash_concat",
    "to_hex",
    "from_hex",
]
