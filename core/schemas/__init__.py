"""
Schemas & Canonicalization
File: __init__.py

Purpose: Export versioning, canonical serialization and the error taxonomy.

Record models live in core.schemas.records and are imported from there
directly; they depend on core.crypto, which itself depends on this package.
"""

from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
    is_compatible_schema_version,
)

from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
    loads_canonical,
)

from .errors import (
    AuthorizationException,
    CanonicalizationException,
    CapacityException,
    ConsistencyException,
    DuplicateAddressException,
    ErrorCodes,
    FormatException,
    LifecycleException,
    RegistryError,
    RegistryException,
    StateIOException,
    WriteOnceException,
)

__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    "is_compatible_schema_version",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonical_equals",
    "canonicalize_value",
    "dumps_canonical",
    "loads_canonical",
    # Errors
    "AuthorizationException",
    "CanonicalizationException",
    "CapacityException",
    "ConsistencyException",
    "DuplicateAddressException",
    "ErrorCodes",
    "FormatException",
    "LifecycleException",
    "RegistryError",
    "RegistryException",
    "StateIOException",
    "WriteOnceException",
]
