"""
Core cryptographic utilities.

Hashing for leaf commitments and tree nodes, plus the prime field that
deposited messages live in.
"""
from .hashing import (
    DIGEST_SIZE,
    sha256,
    hash_bytes,
    hash_canonical,
    hash_concat,
    to_hex,
    from_hex,
)
from .field import (
    FIELD_MODULUS,
    FIELD_BITS,
    FIELD_BYTES,
    is_field_element,
    require_field_element,
    field_to_bytes,
    field_from_bytes,
    to_bits,
    from_bits,
    random_field,
)

__all__ = [
    "DIGEST_SIZE",
    "sha256",
    "hash_bytes",
    "hash_canonical",
    "hash_concat",
    "to_hex",
    "from_hex",
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
