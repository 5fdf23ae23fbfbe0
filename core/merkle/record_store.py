"""
Merkle - Record Store
Authenticated key-value store of AddressRecords backed by a SparseMerkleTree.

This is the off-chain mirror the registry's committed root refers to.
The registry never writes here: callers mirror a record into the store
only after the corresponding registry operation has succeeded.

Persistence layout (store.json, canonical JSON):
    {
      "schema_version": "v1",
      "height": 10,
      "root": "0x...",
      "records": [{"index": 0, "address": "0x...", "message": 0}, ...]
    }
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from core.crypto.hashing import to_hex
from core.schemas.canonical import dumps_canonical
from core.schemas.errors import CapacityException, ErrorCodes, StateIOException
from core.schemas.records import AddressRecord, normalize_address
from core.schemas.versioning import assert_supported_schema_version, SCHEMA_VERSION

from .merkle_tree import DEFAULT_HEIGHT, MerkleWitness, SparseMerkleTree


logger = logging.getLogger(__name__)

STORE_FILE = "store.json"


class RecordStore:
    """
    Records indexed by leaf position, with lookup by address key.

    Usage:
        store = RecordStore(height=10)
        index = store.next_free_index()
        witness = store.get_witness_by_index(index)
        # ... registry.add_address(admin, record, witness) succeeds ...
        store.insert_or_update(index, record)
        store.find_by_key(record.key())  # -> (index, record)
    """

    def __init__(self, height: int = DEFAULT_HEIGHT) -> None:
        self._tree = SparseMerkleTree(height)
        self._records: dict[int, AddressRecord] = {}
        self._index_by_key: dict[str, int] = {}

    @property
    def height(self) -> int:
        return self._tree.height

    @property
    def capacity(self) -> int:
        return self._tree.capacity

    def __len__(self) -> int:
        return len(self._records)

    def get_root(self) -> bytes:
        return self._tree.root

    def get_witness_by_index(self, index: int) -> MerkleWitness:
        return self._tree.witness(index)

    def get_leaf(self, index: int) -> bytes:
        return self._tree.get_leaf(index)

    def get_record(self, index: int) -> AddressRecord | None:
        return self._records.get(index)

    def find_by_key(self, key: str) -> tuple[int, AddressRecord] | None:
        """Find the slot holding the record for `key` (an address)."""
        index = self._index_by_key.get(normalize_address(key))
        if index is None:
            return None
        return index, self._records[index]

    def insert_or_update(self, index: int, record: AddressRecord) -> None:
        """
        Write `record` into slot `index`.

        A slot keeps its address for life: an address already stored at a
        different index, or a slot already holding another address, is
        rejected.

        Raises:
            ValueError: If the write would move or overwrite an address
            IndexError: If index is outside the tree
        """
        key = record.key()
        existing_index = self._index_by_key.get(key)
        if existing_index is not None and existing_index != index:
            raise ValueError(f"Address {key} is already stored at index {existing_index}")
        current = self._records.get(index)
        if current is not None and current.key() != key:
            raise ValueError(f"Slot {index} already holds address {current.key()}")

        self._tree.set_leaf(index, record.leaf_hash())
        self._records[index] = record
        self._index_by_key[key] = index
        logger.debug(f"Stored record {key} at index {index}, root={to_hex(self._tree.root)}")

    def next_free_index(self) -> int:
        """
        Lowest slot without a record.

        Raises:
            CapacityException: If every slot is taken
        """
        for index in range(self.capacity):
            if index not in self._records:
                return index
        raise CapacityException(
            f"Record store is full ({self.capacity} leaves)",
            limit=self.capacity,
            code=ErrorCodes.STORE_FULL,
        )

    def records(self) -> list[tuple[int, AddressRecord]]:
        """All stored records in index order."""
        return sorted(self._records.items())

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "height": self.height,
            "root": to_hex(self.get_root()),
            "records": [
                {"index": index, "address": record.address, "message": record.message}
                for index, record in self.records()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecordStore":
        """
        Rebuild a store from its serialized form.

        Raises:
            StateIOException: If the data is malformed or the recomputed
                root differs from the recorded one
        """
        try:
            assert_supported_schema_version(data.get("schema_version", ""))
            store = cls(height=int(data["height"]))
            for entry in data["records"]:
                record = AddressRecord(address=entry["address"], message=entry["message"])
                store.insert_or_update(int(entry["index"]), record)
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise StateIOException(f"Malformed record store data: {e}") from e

        recorded_root = data.get("root")
        if recorded_root is not None and recorded_root != to_hex(store.get_root()):
            raise StateIOException(
                "Record store root does not match its records",
                details={"recorded": recorded_root, "computed": to_hex(store.get_root())},
            )
        return store

    def save(self, directory: str | Path) -> Path:
        """Write store.json into `directory` (created if missing)."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / STORE_FILE
        path.write_text(dumps_canonical(self.to_dict()), encoding="utf-8")
        logger.info(f"Saved {len(self)} records to {path}")
        return path

    @classmethod
    def load(cls, directory: str | Path) -> "RecordStore":
        """
        Load store.json from `directory`.

        Raises:
            StateIOException: If the file is missing or invalid
        """
        path = Path(directory) / STORE_FILE
        if not path.exists():
            raise StateIOException(f"Record store file not found: {path}", path=str(path))
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StateIOException(f"Invalid JSON in {path}: {e}", path=str(path)) from e
        store = cls.from_dict(data)
        logger.debug(f"Loaded {len(store)} records from {path}")
        return store


__all__ = [
    "STORE_FILE",
    "RecordStore",
]
