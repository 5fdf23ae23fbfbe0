"""
Sparse Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py

Tests:
1. Empty subtree roots - zero_hashes chain from the 32-zero-byte leaf
2. Witness verification - witness for each touched index recomputes the root
3. Index encoding - direction bits encode the leaf index
4. Tamper detection - tampered sibling/leaf/root fails verification
5. Sparse storage - clearing a leaf restores the empty root
"""
import pytest

from core.crypto.hashing import sha256
from core.merkle.merkle_tree import (
    DEFAULT_HEIGHT,
    EMPTY_LEAF,
    MerkleWitness,
    SparseMerkleTree,
    empty_root,
    merkle_parent,
    verify_witness,
    zero_hashes,
)


class TestEmptyTree:
    """Tests for empty tree behavior."""

    def test_empty_leaf_is_zero_bytes(self):
        assert EMPTY_LEAF == bytes(32)

    def test_zero_hashes_chain(self):
        """Each level is the parent of two copies of the level below."""
        levels = zero_hashes(3)

        assert len(levels) == 4
        assert levels[0] == EMPTY_LEAF
        for lower, upper in zip(levels, levels[1:]):
            assert upper == merkle_parent(lower, lower)

    def test_empty_root_matches_fresh_tree(self):
        assert SparseMerkleTree(DEFAULT_HEIGHT).root == empty_root(DEFAULT_HEIGHT)

    def test_default_geometry(self):
        tree = SparseMerkleTree()

        assert tree.height == 10
        assert tree.capacity == 1024

    @pytest.mark.parametrize("height", [0, 65])
    def test_height_out_of_range(self, height):
        with pytest.raises(ValueError, match="height"):
            SparseMerkleTree(height)


class TestSmallTree:
    """Hand-computed roots for a height-2 tree."""

    def test_single_leaf_root(self):
        tree = SparseMerkleTree(height=2)
        leaf = sha256(b"x")
        tree.set_leaf(2, leaf)

        left = merkle_parent(EMPTY_LEAF, EMPTY_LEAF)
        right = merkle_parent(leaf, EMPTY_LEAF)
        assert tree.root == merkle_parent(left, right)

    def test_full_tree_root(self):
        tree = SparseMerkleTree(height=2)
        leaves = [sha256(bytes([i])) for i in range(4)]
        for i, leaf in enumerate(leaves):
            tree.set_leaf(i, leaf)

        expected = merkle_parent(
            merkle_parent(leaves[0], leaves[1]),
            merkle_parent(leaves[2], leaves[3]),
        )
        assert tree.root == expected


class TestWitness:
    """Tests for witness generation and root recomputation."""

    @pytest.fixture
    def tree(self):
        tree = SparseMerkleTree(height=4)
        for i in (0, 3, 7, 15):
            tree.set_leaf(i, sha256(f"leaf{i}".encode()))
        return tree

    @pytest.mark.parametrize("index", [0, 1, 3, 7, 8, 15])
    def test_witness_recomputes_root(self, tree, index):
        witness = tree.witness(index)

        assert witness.height == 4
        assert witness.calculate_root(tree.get_leaf(index)) == tree.root
        assert verify_witness(witness, tree.get_leaf(index), tree.root)

    @pytest.mark.parametrize("index", [0, 1, 5, 10, 15])
    def test_witness_encodes_index(self, tree, index):
        assert tree.witness(index).calculate_index() == index

    def test_witness_predicts_new_root(self, tree):
        """A witness taken before a write predicts the root after it."""
        witness = tree.witness(5)
        new_leaf = sha256(b"new")
        predicted = witness.calculate_root(new_leaf)

        tree.set_leaf(5, new_leaf)

        assert tree.root == predicted

    def test_witness_goes_stale_after_other_write(self, tree):
        witness = tree.witness(5)
        tree.set_leaf(6, sha256(b"sibling changed"))

        assert not verify_witness(witness, EMPTY_LEAF, tree.root)

    def test_tampered_sibling_fails(self, tree):
        witness = tree.witness(3)
        siblings = list(witness.siblings)
        siblings[1] = sha256(b"tampered")
        tampered = MerkleWitness(siblings=tuple(siblings), is_left=witness.is_left)

        assert not verify_witness(tampered, tree.get_leaf(3), tree.root)

    def test_tampered_leaf_fails(self, tree):
        assert not verify_witness(tree.witness(3), sha256(b"wrong"), tree.root)

    def test_wrong_position_fails(self, tree):
        witness = tree.witness(3)
        flipped = MerkleWitness(
            siblings=witness.siblings,
            is_left=(not witness.is_left[0],) + witness.is_left[1:],
        )

        assert flipped.calculate_index() == 2
        assert not verify_witness(flipped, tree.get_leaf(3), tree.root)

    def test_witness_dict_round_trip(self, tree):
        witness = tree.witness(7)
        assert MerkleWitness.from_dict(witness.to_dict()) == witness


class TestWitnessValidation:

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError, match="direction bits"):
            MerkleWitness(siblings=(EMPTY_LEAF, EMPTY_LEAF), is_left=(True,))

    def test_empty_witness(self):
        with pytest.raises(ValueError, match="height"):
            MerkleWitness(siblings=(), is_left=())

    def test_short_sibling(self):
        with pytest.raises(ValueError, match="32 bytes"):
            MerkleWitness(siblings=(b"\x00",), is_left=(True,))


class TestSparseStorage:

    def test_clearing_leaf_restores_empty_root(self):
        tree = SparseMerkleTree(height=5)
        tree.set_leaf(9, sha256(b"x"))
        tree.set_leaf(9, EMPTY_LEAF)

        assert tree.root == empty_root(5)
        assert list(tree.leaves()) == []

    def test_leaves_listed_in_index_order(self):
        tree = SparseMerkleTree(height=3)
        tree.set_leaf(6, sha256(b"b"))
        tree.set_leaf(1, sha256(b"a"))

        assert [i for i, _ in tree.leaves()] == [1, 6]

    @pytest.mark.parametrize("index", [-1, 8])
    def test_index_out_of_range(self, index):
        tree = SparseMerkleTree(height=3)
        with pytest.raises(IndexError):
            tree.set_leaf(index, sha256(b"x"))
        with pytest.raises(IndexError):
            tree.witness(index)

    def test_leaf_must_be_digest_sized(self):
        with pytest.raises(ValueError, match="32 bytes"):
            SparseMerkleTree(height=3).set_leaf(0, b"short")
