"""
Schemas - Registry Records
File: records.py

Purpose: Data model for the sealed message registry.

- AddressRecord: the value committed to a tree leaf
- RegistryState: the committed registry state (root, counters, admin)
- RegistryEvent: notifications emitted by successful mutations

Leaf encoding (hard contract):
    leaf = sha256(address (32 bytes) || message (32 bytes big-endian))
"""

from __future__ import annotations

import re
import secrets
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from core.crypto.field import field_to_bytes, require_field_element
from core.crypto.hashing import DIGEST_SIZE, from_hex, sha256, to_hex

from .versioning import SCHEMA_VERSION

# 0x followed by 64 lowercase hex digits
ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")

# Committed root of a registry that was never initialized
UNSET_ROOT: bytes = bytes(DIGEST_SIZE)

NEW_MESSAGE_EVENT = "new-message"


def normalize_address(value: Any) -> str:
    """
    Normalize an address to its canonical 0x-prefixed lowercase form.

    Accepts 32 raw bytes or a hex string (with or without 0x, any case).

    Raises:
        ValueError: If value is not a 256-bit identifier
    """
    if isinstance(value, bytes):
        if len(value) != 32:
            raise ValueError(f"Address must be 32 bytes, got {len(value)}")
        return to_hex(value)
    if not isinstance(value, str):
        raise ValueError(f"Address must be a hex string or bytes, got {type(value).__name__}")
    candidate = value.strip().lower()
    if not candidate.startswith("0x"):
        candidate = "0x" + candidate
    if not ADDRESS_PATTERN.match(candidate):
        raise ValueError(f"Address must be 0x followed by 64 hex digits, got {value!r}")
    return candidate


def address_to_bytes(address: str) -> bytes:
    """Decode an address into its 32 raw bytes."""
    return from_hex(normalize_address(address))


def generate_address() -> str:
    """Generate a fresh random address."""
    return to_hex(secrets.token_bytes(32))


class AddressRecord(BaseModel):
    """
    An eligible address and the message it has deposited (0 if none yet).

    Records are immutable; a deposit produces a new record via with_message().
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str = Field(..., description="256-bit identifier as 0x hex")
    message: int = Field(default=0, description="Deposited message, 0 meaning none yet")

    @field_validator("address", mode="before")
    @classmethod
    def _normalize_address(cls, v: Any) -> str:
        return normalize_address(v)

    @field_validator("message")
    @classmethod
    def _check_message(cls, v: int) -> int:
        return require_field_element(v, "message")

    @property
    def has_message(self) -> bool:
        return self.message != 0

    def key(self) -> str:
        """Lookup key used by the record store."""
        return self.address

    def serialize(self) -> bytes:
        """Fixed-width binary encoding: address then message."""
        return address_to_bytes(self.address) + field_to_bytes(self.message)

    def leaf_hash(self) -> bytes:
        """The value this record contributes to its tree leaf."""
        return sha256(self.serialize())

    def with_message(self, message: int) -> "AddressRecord":
        return AddressRecord(address=self.address, message=message)


class RegistryState(BaseModel):
    """
    Committed registry state.

    Snapshots are immutable: every successful mutation replaces the whole
    state in one assignment, so root and counters never diverge.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: str = Field(default=SCHEMA_VERSION)
    initiated: bool = Field(default=False)
    storage_root: bytes = Field(default=UNSET_ROOT, description="Root of the record tree")
    num_of_addresses: int = Field(default=0, ge=0)
    num_of_messages: int = Field(default=0, ge=0)
    admin: str | None = Field(default=None, description="Identity allowed to enroll addresses")

    @field_validator("storage_root", mode="before")
    @classmethod
    def _decode_root(cls, v: Any) -> bytes:
        if isinstance(v, str):
            v = from_hex(v)
        if not isinstance(v, bytes) or len(v) != DIGEST_SIZE:
            raise ValueError(f"storage_root must be {DIGEST_SIZE} bytes")
        return v

    @field_validator("admin", mode="before")
    @classmethod
    def _normalize_admin(cls, v: Any) -> str | None:
        if v is None:
            return None
        return normalize_address(v)

    @field_serializer("storage_root", when_used="json")
    def _encode_root(self, v: bytes) -> str:
        return to_hex(v)

    @model_validator(mode="after")
    def _check_counters(self) -> "RegistryState":
        if self.num_of_messages > self.num_of_addresses:
            raise ValueError("num_of_messages cannot exceed num_of_addresses")
        if not self.initiated and (self.admin is not None or self.num_of_addresses):
            raise ValueError("Uninitialized state cannot carry an admin or enrolled addresses")
        return self


class RegistryEvent(BaseModel):
    """Notification emitted after a successful deposit."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["new-message"] = Field(default=NEW_MESSAGE_EVENT)
    count: int = Field(..., ge=1, description="num_of_messages after the deposit")
