"""
Registry Client Unit Tests
Tests for core/registry/client.py

Tests:
- The store mirror tracks the committed root after every operation
- Rejections leave both the registry and the store untouched
- Retries on stale witnesses, bounded by config.client.max_retries
"""
import pytest

from core.merkle.record_store import RecordStore
from core.registry.client import RegistryClient
from core.registry.registry import Registry
from core.schemas.errors import (
    AuthorizationException,
    ConsistencyException,
    DuplicateAddressException,
    ErrorCodes,
    FormatException,
    WriteOnceException,
)
from core.schemas.records import AddressRecord

from fixtures.common import (
    FLAGS_ONLY_1,
    FLAGS_ONLY_2,
    make_address,
    make_client,
    make_config,
    make_enrolled_client,
    make_message,
)


class TestClientLifecycle:

    def test_initialize_uses_store_root(self, client, admin):
        client.initialize(admin)

        assert client.registry.storage_root == client.store.get_root()
        client.assert_synced()

    def test_store_height_must_match_config(self, config):
        with pytest.raises(ValueError, match="height"):
            RegistryClient(Registry(config), RecordStore(height=4), config)

    def test_config_defaults_to_registry_config(self):
        config = make_config(height=5, max_addresses=10)
        client = RegistryClient(Registry(config), RecordStore(height=5))

        assert client.config is config


class TestEnroll:

    def test_enroll_assigns_sequential_indices(self, client, admin, alice, bob):
        client.initialize(admin)

        assert client.enroll(admin, alice) == 0
        assert client.enroll(admin, bob) == 1
        assert client.registry.num_of_addresses == 2
        client.assert_synced()

    def test_rejected_enroll_leaves_store_untouched(self, client, admin, alice, bob):
        client.initialize(admin)
        root = client.store.get_root()

        with pytest.raises(AuthorizationException):
            client.enroll(bob, alice)

        assert client.store.get_root() == root
        assert len(client.store) == 0
        client.assert_synced()


    def test_enrolling_same_address_twice_rejected(self, client, admin, alice, bob):
        client.initialize(admin)
        client.enroll(admin, alice)
        before = client.registry.state

        with pytest.raises(DuplicateAddressException) as exc_info:
            client.enroll(admin, alice.upper())

        assert exc_info.value.code == ErrorCodes.ALREADY_ENROLLED
        assert exc_info.value.details["leaf_index"] == 0
        assert client.registry.state == before
        client.assert_synced()

        assert client.enroll(admin, bob) == 1
        client.assert_synced()


class TestDeposit:

    def test_deposit_returns_event(self, enrolled_client, alice):
        event = enrolled_client.deposit(alice, make_message(FLAGS_ONLY_1))

        assert event.count == 1
        assert enrolled_client.store.find_by_key(alice)[1].message == make_message(FLAGS_ONLY_1)
        enrolled_client.assert_synced()

    def test_deposit_twice_rejected(self, enrolled_client, alice):
        enrolled_client.deposit(alice, make_message())

        with pytest.raises(WriteOnceException):
            enrolled_client.deposit(alice, make_message())
        enrolled_client.assert_synced()

    def test_ineligible_depositor_rejected(self, enrolled_client):
        stranger = make_address("stranger")

        with pytest.raises(ConsistencyException):
            enrolled_client.deposit(stranger, make_message())

        assert enrolled_client.store.find_by_key(stranger) is None
        assert enrolled_client.registry.num_of_messages == 0

    def test_invalid_flags_leave_record_empty(self, enrolled_client, alice):
        with pytest.raises(FormatException):
            enrolled_client.deposit(alice, make_message(FLAGS_ONLY_2))

        assert not enrolled_client.store.find_by_key(alice)[1].has_message
        enrolled_client.assert_synced()


    def test_failing_listener_keeps_store_in_sync(self, enrolled_client, alice):
        def broken(event):
            raise RuntimeError("listener down")

        enrolled_client.registry.subscribe(broken)

        event = enrolled_client.deposit(alice, make_message(FLAGS_ONLY_1))

        assert event.count == 1
        assert enrolled_client.store.find_by_key(alice)[1].has_message
        enrolled_client.assert_synced()


class TestSync:

    def test_out_of_band_store_write_detected(self, enrolled_client):
        enrolled_client.store.insert_or_update(50, AddressRecord(address=make_address("rogue")))

        with pytest.raises(ConsistencyException, match="out of sync"):
            enrolled_client.assert_synced()


class _FlakyRegistry(Registry):
    """Fails the first `failures` enrollments with a stale-witness error."""

    def __init__(self, config, failures):
        super().__init__(config)
        self.failures = failures
        self.calls = 0

    def add_address(self, caller, record, witness):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConsistencyException("stale", leaf_index=witness.calculate_index())
        return super().add_address(caller, record, witness)


class TestRetries:

    def test_no_retries_by_default(self, admin, alice):
        config = make_config()
        registry = _FlakyRegistry(config, failures=1)
        client = RegistryClient(registry, RecordStore(config.tree.height), config)
        client.initialize(admin)

        with pytest.raises(ConsistencyException):
            client.enroll(admin, alice)
        assert registry.calls == 1

    def test_retries_until_success(self, admin, alice):
        config = make_config(max_retries=2)
        registry = _FlakyRegistry(config, failures=2)
        client = RegistryClient(registry, RecordStore(config.tree.height), config)
        client.initialize(admin)

        assert client.enroll(admin, alice) == 0
        assert registry.calls == 3
        client.assert_synced()

    def test_retries_exhausted(self, admin, alice):
        config = make_config(max_retries=1)
        registry = _FlakyRegistry(config, failures=5)
        client = RegistryClient(registry, RecordStore(config.tree.height), config)
        client.initialize(admin)

        with pytest.raises(ConsistencyException):
            client.enroll(admin, alice)
        assert registry.calls == 2

    def test_other_rejections_not_retried(self, alice):
        client = make_enrolled_client(("alice",), config=make_config(max_retries=3))
        client.deposit(alice, make_message())

        with pytest.raises(WriteOnceException):
            client.deposit(alice, make_message())
        assert client.registry.num_of_messages == 1


def test_make_client_starts_uninitialized():
    assert not make_client().registry.initiated
