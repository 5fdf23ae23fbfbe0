"""
Registry - Eligibility Registry and One-time Message Deposits

This package provides:
- Registry: the admin-gated state machine over a committed Merkle root
- check_flags & friends: the message flag policy
- RegistryClient: caller-side witness fetching and store mirroring
- save_registry_dir / load_registry_dir: directory persistence

Usage:
    from core.merkle import RecordStore
    from core.registry import Registry, RegistryClient

    store = RecordStore()
    client = RegistryClient(Registry(), store)
    client.initialize(admin)
    client.enroll(admin, alice)
    client.deposit(alice, message)
"""
from .flags import (
    FLAG_BIT_INDICES,
    FLAG_COUNT,
    check_flags,
    extract_flags,
    flag_violations,
    flags_valid,
    format_flags,
    parse_flags,
    with_flags,
)
from .registry import EventListener, Registry
from .client import RegistryClient
from .persistence import (
    MANIFEST_FILE,
    REGISTRY_FILE,
    StateManifest,
    load_registry_dir,
    save_registry_dir,
)

__all__ = [
    "FLAG_BIT_INDICES",
    "FLAG_COUNT",
    "check_flags",
    "extract_flags",
    "flag_violations",
    "flags_valid",
    "format_flags",
    "parse_flags",
    "with_flags",
    "EventListener",
    "Registry",
    "RegistryClient",
    "MANIFEST_FILE",
    "REGISTRY_FILE",
    "StateManifest",
    "load_registry_dir",
    "save_registry_dir",
]
