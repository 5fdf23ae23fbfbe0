"""
Common test fixtures shared by all modules.

Provides factory functions for the core registry data structures:
- Addresses (deterministic, derived from a label)
- Messages with a chosen flag pattern
- AddressRecords
- Small RuntimeConfigs
- A RegistryClient with an initialized registry and enrolled addresses
"""

from typing import Optional, Sequence

from core.config.runtime import ClientConfig, RegistryConfig, RuntimeConfig, TreeConfig
from core.crypto.hashing import sha256, to_hex
from core.merkle.record_store import RecordStore
from core.registry.client import RegistryClient
from core.registry.flags import with_flags
from core.registry.registry import Registry
from core.schemas.records import AddressRecord


# Flag patterns, flag1 first
FLAGS_NONE = (False, False, False, False, False, False)
FLAGS_ONLY_1 = (True, False, False, False, False, False)
FLAGS_2_AND_3 = (False, True, True, False, False, False)
FLAGS_ONLY_2 = (False, True, False, False, False, False)
FLAGS_4_AND_5 = (False, False, False, True, True, False)

DEFAULT_PAYLOAD = 0xC0FFEE


def make_address(label: str = "alice") -> str:
    """Deterministic address derived from a label."""
    return to_hex(sha256(label.encode("utf-8")))


def make_message(
    flags: Sequence[bool] = FLAGS_ONLY_1,
    payload: int = DEFAULT_PAYLOAD,
) -> int:
    """Message carrying `payload` in its low bits and `flags` in the top six."""
    return with_flags(payload, flags)


def make_record(label: str = "alice", message: int = 0) -> AddressRecord:
    return AddressRecord(address=make_address(label), message=message)


def make_config(
    height: int = 10,
    max_addresses: int = 100,
    max_retries: int = 0,
) -> RuntimeConfig:
    return RuntimeConfig(
        tree=TreeConfig(height=height),
        registry=RegistryConfig(max_addresses=max_addresses),
        client=ClientConfig(max_retries=max_retries),
    ).validate()


def make_client(config: Optional[RuntimeConfig] = None) -> RegistryClient:
    """Uninitialized registry over an empty store."""
    config = config or make_config()
    return RegistryClient(Registry(config), RecordStore(config.tree.height), config)


def make_enrolled_client(
    labels: Sequence[str] = ("alice",),
    admin_label: str = "admin",
    config: Optional[RuntimeConfig] = None,
) -> RegistryClient:
    """Initialized registry with one enrolled address per label."""
    client = make_client(config)
    admin = make_address(admin_label)
    client.initialize(admin)
    for label in labels:
        client.enroll(admin, make_address(label))
    return client
