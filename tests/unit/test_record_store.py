"""
Record Store Unit Tests
Tests for core/merkle/record_store.py and the AddressRecord leaf encoding

Tests:
- Leaf encoding: sha256(address || message as 32 big-endian bytes)
- Slot allocation and key lookup
- Slots keep their address for life
- store.json save/load with root verification
"""
import json

import pytest

from core.crypto.field import field_to_bytes
from core.crypto.hashing import from_hex, sha256, to_hex
from core.merkle.merkle_tree import EMPTY_LEAF, empty_root
from core.merkle.record_store import STORE_FILE, RecordStore
from core.schemas.errors import CapacityException, ErrorCodes, StateIOException
from core.schemas.records import AddressRecord

from fixtures.common import make_address, make_record


class TestAddressRecord:
    """Tests for the committed leaf value."""

    def test_leaf_hash_encoding(self):
        record = make_record("alice", message=5)
        expected = sha256(from_hex(record.address) + field_to_bytes(5))

        assert record.leaf_hash() == expected

    def test_fresh_record_has_no_message(self):
        record = make_record("alice")

        assert record.message == 0
        assert not record.has_message
        assert record.leaf_hash() != EMPTY_LEAF

    def test_with_message_returns_new_record(self):
        record = make_record("alice")
        updated = record.with_message(7)

        assert record.message == 0
        assert updated.message == 7
        assert updated.address == record.address

    def test_address_normalized(self):
        upper = make_address("alice").upper().replace("0X", "")
        assert AddressRecord(address=upper).address == make_address("alice")

    def test_address_from_bytes(self):
        raw = sha256(b"alice")
        assert AddressRecord(address=raw).address == to_hex(raw)

    @pytest.mark.parametrize("address", ["0x1234", "not-hex", 42])
    def test_invalid_address_rejected(self, address):
        with pytest.raises(ValueError):
            AddressRecord(address=address)

    def test_message_outside_field_rejected(self):
        with pytest.raises(ValueError):
            AddressRecord(address=make_address("alice"), message=2**255)

    def test_records_are_immutable(self):
        record = make_record("alice")
        with pytest.raises(Exception):
            record.message = 1


class TestSlots:
    """Tests for insert_or_update / find_by_key / next_free_index."""

    def test_empty_store(self):
        store = RecordStore(height=4)

        assert len(store) == 0
        assert store.get_root() == empty_root(4)
        assert store.next_free_index() == 0
        assert store.find_by_key(make_address("alice")) is None

    def test_insert_and_find(self):
        store = RecordStore(height=4)
        record = make_record("alice")
        store.insert_or_update(0, record)

        assert store.find_by_key(record.key()) == (0, record)
        assert store.get_record(0) == record
        assert store.get_leaf(0) == record.leaf_hash()
        assert store.next_free_index() == 1

    def test_find_by_key_normalizes(self):
        store = RecordStore(height=4)
        record = make_record("alice")
        store.insert_or_update(0, record)

        assert store.find_by_key(record.address.upper().replace("0X", "0x")) == (0, record)

    def test_update_in_place(self):
        store = RecordStore(height=4)
        record = make_record("alice")
        store.insert_or_update(2, record)
        witness = store.get_witness_by_index(2)

        store.insert_or_update(2, record.with_message(9))

        assert store.get_record(2).message == 9
        assert store.get_root() == witness.calculate_root(record.with_message(9).leaf_hash())

    def test_address_cannot_move(self):
        store = RecordStore(height=4)
        store.insert_or_update(0, make_record("alice"))

        with pytest.raises(ValueError, match="already stored"):
            store.insert_or_update(1, make_record("alice"))

    def test_slot_cannot_change_owner(self):
        store = RecordStore(height=4)
        store.insert_or_update(0, make_record("alice"))

        with pytest.raises(ValueError, match="already holds"):
            store.insert_or_update(0, make_record("bob"))

    def test_next_free_index_fills_gaps(self):
        store = RecordStore(height=4)
        store.insert_or_update(0, make_record("a"))
        store.insert_or_update(2, make_record("b"))

        assert store.next_free_index() == 1

    def test_full_store(self):
        store = RecordStore(height=1)
        store.insert_or_update(0, make_record("a"))
        store.insert_or_update(1, make_record("b"))

        with pytest.raises(CapacityException) as exc_info:
            store.next_free_index()
        assert exc_info.value.code == ErrorCodes.STORE_FULL

    def test_records_in_index_order(self):
        store = RecordStore(height=4)
        store.insert_or_update(5, make_record("b"))
        store.insert_or_update(1, make_record("a"))

        assert [i for i, _ in store.records()] == [1, 5]


class TestPersistence:
    """Tests for store.json."""

    def test_save_and_load(self, tmp_path):
        store = RecordStore(height=4)
        store.insert_or_update(0, make_record("alice", message=3))
        store.insert_or_update(1, make_record("bob"))

        path = store.save(tmp_path)
        loaded = RecordStore.load(tmp_path)

        assert path.name == STORE_FILE
        assert loaded.height == 4
        assert loaded.get_root() == store.get_root()
        assert loaded.records() == store.records()

    def test_dict_form_lists_hex_root(self):
        store = RecordStore(height=4)
        data = store.to_dict()

        assert data["root"] == to_hex(empty_root(4))
        assert RecordStore.from_dict(data).get_root() == store.get_root()

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(StateIOException, match="not found"):
            RecordStore.load(tmp_path)

    def test_load_invalid_json(self, tmp_path):
        (tmp_path / STORE_FILE).write_text("{not json")
        with pytest.raises(StateIOException, match="Invalid JSON"):
            RecordStore.load(tmp_path)

    def test_root_mismatch_detected(self, tmp_path):
        store = RecordStore(height=4)
        store.insert_or_update(0, make_record("alice"))
        store.save(tmp_path)

        data = json.loads((tmp_path / STORE_FILE).read_text())
        data["records"][0]["message"] = 1
        (tmp_path / STORE_FILE).write_text(json.dumps(data))

        with pytest.raises(StateIOException, match="root does not match"):
            RecordStore.load(tmp_path)

    def test_unsupported_schema_version(self):
        data = RecordStore(height=4).to_dict()
        data["schema_version"] = "v0"

        with pytest.raises(StateIOException, match="Malformed"):
            RecordStore.from_dict(data)
