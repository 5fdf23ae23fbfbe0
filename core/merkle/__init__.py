"""
Merkle - Sparse Tree, Witnesses and Record Store

This package provides:
- MerkleWitness: positional sibling path for one leaf
- SparseMerkleTree: fixed-height tree with precomputed empty subtrees
- RecordStore: AddressRecords mirrored into a SparseMerkleTree

Canonical Commitment Rules:
1. Empty leaf: 32 zero bytes
2. Parent hashing: sha256(left + right)
3. Record leaf: sha256(address || message)

Usage:
    from core.merkle import RecordStore, EMPTY_LEAF

    store = RecordStore(height=10)
    witness = store.get_witness_by_index(0)
    assert witness.calculate_root(EMPTY_LEAF) == store.get_root()
"""
from .merkle_tree import (
    DEFAULT_HEIGHT,
    EMPTY_LEAF,
    MAX_HEIGHT,
    LeafWitness,
    MerkleWitness,
    SparseMerkleTree,
    empty_root,
    merkle_parent,
    verify_witness,
    zero_hashes,
)
from .record_store import STORE_FILE, RecordStore


__all__ = [
    "DEFAULT_HEIGHT",
    "EMPTY_LEAF",
    "MAX_HEIGHT",
    "LeafWitness",
    "MerkleWitness",
    "SparseMerkleTree",
    "empty_root",
    "merkle_parent",
    "verify_witness",
    "zero_hashes",
    "STORE_FILE",
    "RecordStore",
]
