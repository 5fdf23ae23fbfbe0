"""
Registry - State Machine
Admin-gated eligibility registry with one-time message deposits.

Lifecycle:
    Uninitialized --initialize--> Initialized   (exactly once, terminal)

Operations (all take the caller identity first):
    initialize(caller, initial_root)
    add_address(caller, record, witness)
    deposit_message(caller, message, record, witness)

Every precondition is evaluated before anything changes. A successful
operation builds a new immutable RegistryState and swaps it in with a
single assignment, so the root and the counters always move together.
The registry never retries and never touches leaf storage; it only
recomputes roots from the witnesses it is given.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from core.config.runtime import RuntimeConfig, get_default_config
from core.crypto.hashing import to_hex
from core.merkle.merkle_tree import EMPTY_LEAF, LeafWitness
from core.schemas.errors import (
    AuthorizationException,
    CapacityException,
    ConsistencyException,
    ErrorCodes,
    FormatException,
    LifecycleException,
    RegistryException,
    WriteOnceException,
)
from core.schemas.records import (
    AddressRecord,
    RegistryEvent,
    RegistryState,
    normalize_address,
)

from .flags import check_flags


logger = logging.getLogger(__name__)

EventListener = Callable[[RegistryEvent], None]


class Registry:
    """
    The committed registry state and the operations that advance it.

    Example:
        >>> store = RecordStore()
        >>> registry = Registry()
        >>> registry.initialize(admin, store.get_root())
        >>> registry.add_address(admin, AddressRecord(address=alice), store.get_witness_by_index(0))
        >>> registry.num_of_addresses
        1
    """

    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        state: Optional[RegistryState] = None,
        events: Optional[list[RegistryEvent]] = None,
    ) -> None:
        self.config = config or get_default_config()
        self._state = state or RegistryState()
        self._events: list[RegistryEvent] = list(events or [])
        self._listeners: list[EventListener] = []

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def initiated(self) -> bool:
        return self._state.initiated

    @property
    def storage_root(self) -> bytes:
        return self._state.storage_root

    @property
    def num_of_addresses(self) -> int:
        return self._state.num_of_addresses

    @property
    def num_of_messages(self) -> int:
        return self._state.num_of_messages

    @property
    def admin(self) -> str | None:
        return self._state.admin

    @property
    def max_addresses(self) -> int:
        return self.config.registry.max_addresses

    @property
    def events(self) -> list[RegistryEvent]:
        return list(self._events)

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback invoked with each event after it is committed.

        Exceptions raised by a listener are logged and do not propagate.
        """
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def initialize(self, caller: str, initial_root: bytes) -> RegistryState:
        """
        Fix the initial root and the admin identity.

        Raises:
            LifecycleException: If already initialized
        """
        caller = normalize_address(caller)
        try:
            if self._state.initiated:
                raise LifecycleException(
                    "Registry is already initialized",
                    code=ErrorCodes.ALREADY_INITIALIZED,
                )
        except RegistryException as e:
            self._log_rejection("initialize", caller, e)
            raise

        new_state = RegistryState(
            initiated=True,
            storage_root=initial_root,
            num_of_addresses=0,
            num_of_messages=0,
            admin=caller,
        )
        self._state = new_state
        logger.info(f"Registry initialized by {caller} with root {to_hex(initial_root)}")
        return new_state

    def add_address(
        self,
        caller: str,
        record: AddressRecord,
        witness: LeafWitness,
    ) -> RegistryState:
        """
        Enroll an address into an empty leaf.

        Raises:
            LifecycleException: If not initialized
            AuthorizationException: If caller is not the admin
            CapacityException: If max_addresses are already enrolled
            FormatException: If record already carries a message
            ConsistencyException: If the witness does not prove an empty
                leaf under the committed root
        """
        caller = normalize_address(caller)
        try:
            self._require_initialized()
            if caller != self._state.admin:
                raise AuthorizationException(
                    "Only the admin may enroll addresses",
                    code=ErrorCodes.NOT_ADMIN,
                    caller=caller,
                    expected=self._state.admin,
                )
            if self._state.num_of_addresses >= self.max_addresses:
                raise CapacityException(
                    f"Registry already holds {self._state.num_of_addresses} addresses",
                    limit=self.max_addresses,
                )
            if record.has_message:
                raise FormatException(
                    "Addresses are enrolled with an empty message",
                    details={"address": record.address},
                )
            self._require_consistent(witness, EMPTY_LEAF, "slot is not empty under the committed root")
        except RegistryException as e:
            self._log_rejection("add_address", caller, e)
            raise

        new_state = self._state.model_copy(update={
            "storage_root": witness.calculate_root(record.leaf_hash()),
            "num_of_addresses": self._state.num_of_addresses + 1,
        })
        self._state = new_state
        logger.info(
            f"Enrolled {record.address} at index {witness.calculate_index()} "
            f"({new_state.num_of_addresses}/{self.max_addresses})"
        )
        return new_state

    def deposit_message(
        self,
        caller: str,
        message: int,
        record: AddressRecord,
        witness: LeafWitness,
    ) -> RegistryState:
        """
        Deposit the one message an enrolled address is allowed.

        `record` must be exactly the leaf currently committed for the
        caller, which also proves the caller was enrolled.

        Raises:
            LifecycleException: If not initialized
            AuthorizationException: If caller is not record.address
            ConsistencyException: If record is not the committed leaf at
                the witness position (never enrolled, or stale)
            WriteOnceException: If record already carries a message
            FormatException: If message is zero or violates the flag policy
        """
        caller = normalize_address(caller)
        try:
            self._require_initialized()
            if caller != record.address:
                raise AuthorizationException(
                    "Messages can only be deposited by the address they belong to",
                    code=ErrorCodes.SENDER_MISMATCH,
                    caller=caller,
                    expected=record.address,
                )
            self._require_consistent(witness, record.leaf_hash(), "record is not the committed leaf")
            if record.has_message:
                raise WriteOnceException(
                    "A message has already been deposited for this address",
                    address=record.address,
                )
            if message == 0:
                raise FormatException("Message must be non-zero")
            check_flags(message)
        except RegistryException as e:
            self._log_rejection("deposit_message", caller, e)
            raise

        updated = record.with_message(message)
        new_state = self._state.model_copy(update={
            "storage_root": witness.calculate_root(updated.leaf_hash()),
            "num_of_messages": self._state.num_of_messages + 1,
        })
        self._state = new_state
        logger.info(
            f"Message deposited by {caller} at index {witness.calculate_index()} "
            f"(messages={new_state.num_of_messages})"
        )

        self._emit(RegistryEvent(count=new_state.num_of_messages))
        return new_state

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self._state.initiated:
            raise LifecycleException(
                "Registry is not initialized",
                code=ErrorCodes.NOT_INITIALIZED,
            )

    def _require_consistent(self, witness: LeafWitness, leaf: bytes, reason: str) -> None:
        index = witness.calculate_index()
        height = self.config.tree.height
        if witness.height != height:
            raise ConsistencyException(
                f"Witness height {witness.height} does not match tree height {height}",
                leaf_index=index,
            )
        if witness.calculate_root(leaf) != self._state.storage_root:
            raise ConsistencyException(
                f"Witness does not reproduce the committed root: {reason}",
                leaf_index=index,
                details={"storage_root": to_hex(self._state.storage_root)},
            )

    def _emit(self, event: RegistryEvent) -> None:
        # State is already committed here; listener failures are only logged
        self._events.append(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener failed on {event.kind} #{event.count}")

    def _log_rejection(self, operation: str, caller: str, error: RegistryException) -> None:
        logger.warning(f"{operation} rejected for {caller}: [{error.code}] {error.message}")


__all__ = [
    "EventListener",
    "Registry",
]
