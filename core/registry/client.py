"""
Registry - Caller-side Client
Drives registry operations the way a caller is expected to:

1. Look up the slot in the record store and fetch its witness
2. Invoke the registry operation with that witness
3. Only if it succeeds, mirror the new record into the store

Stale witnesses surface as ConsistencyException. The registry never
retries; this client may refresh the witness and try again, up to
config.client.max_retries times.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from core.config.runtime import RuntimeConfig
from core.crypto.hashing import to_hex
from core.merkle.record_store import RecordStore
from core.schemas.errors import ConsistencyException, DuplicateAddressException
from core.schemas.records import AddressRecord, RegistryEvent, normalize_address

from .registry import Registry


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RegistryClient:
    """
    Keeps a Registry and its RecordStore mirror in step.

    Usage:
        client = RegistryClient(registry, store)
        client.initialize(admin)
        index = client.enroll(admin, alice)
        event = client.deposit(alice, message)
    """

    def __init__(
        self,
        registry: Registry,
        store: RecordStore,
        config: Optional[RuntimeConfig] = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.config = config or registry.config
        if store.height != self.config.tree.height:
            raise ValueError(
                f"Record store height {store.height} does not match "
                f"configured tree height {self.config.tree.height}"
            )

    def initialize(self, caller: str) -> None:
        """Initialize the registry with the store's current root."""
        self.registry.initialize(caller, self.store.get_root())

    def enroll(self, caller: str, address: str) -> int:
        """
        Enroll `address` into the next free slot.

        Returns:
            The leaf index the address now occupies

        Raises:
            DuplicateAddressException: If the store already holds `address`;
                the registry is not called
            RegistryException: Whatever the registry rejects the enrollment with
        """
        record = AddressRecord(address=address)

        def attempt() -> int:
            found = self.store.find_by_key(record.key())
            if found is not None:
                raise DuplicateAddressException(
                    f"Address {record.address} is already enrolled",
                    address=record.address,
                    leaf_index=found[0],
                )
            index = self.store.next_free_index()
            witness = self.store.get_witness_by_index(index)
            self.registry.add_address(caller, record, witness)
            self.store.insert_or_update(index, record)
            return index

        return self._with_retries("enroll", attempt)

    def deposit(self, caller: str, message: int) -> RegistryEvent:
        """
        Deposit `message` on behalf of `caller`.

        A caller the store does not know still gets its attempt: a fresh
        empty record at the next free slot is presented, which the registry
        rejects because that leaf is not committed.

        Returns:
            The new-message event emitted by the registry
        """
        caller = normalize_address(caller)

        def attempt() -> RegistryEvent:
            found = self.store.find_by_key(caller)
            if found is None:
                index, record = self.store.next_free_index(), AddressRecord(address=caller)
            else:
                index, record = found
            witness = self.store.get_witness_by_index(index)
            self.registry.deposit_message(caller, message, record, witness)
            self.store.insert_or_update(index, record.with_message(message))
            return self.registry.events[-1]

        return self._with_retries("deposit", attempt)

    def assert_synced(self) -> None:
        """
        Raises:
            ConsistencyException: If the store no longer matches the committed root
        """
        if self.store.get_root() != self.registry.storage_root:
            raise ConsistencyException(
                "Record store is out of sync with the committed root",
                details={
                    "store_root": to_hex(self.store.get_root()),
                    "storage_root": to_hex(self.registry.storage_root),
                },
            )

    def _with_retries(self, operation: str, fn: Callable[[], T]) -> T:
        retries = self.config.client.max_retries
        attempt = 0
        while True:
            try:
                return fn()
            except ConsistencyException:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.info(f"{operation}: stale witness, refreshing (retry {attempt}/{retries})")


__all__ = [
    "RegistryClient",
]
