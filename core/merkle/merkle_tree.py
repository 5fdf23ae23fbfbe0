"""
Merkle - Sparse Merkle Tree
Fixed-height sparse Merkle tree, positional witnesses and root recomputation.

This module provides:
- Precomputed roots of empty subtrees for any height
- MerkleWitness: the sibling path of one leaf, consumed by the registry
- SparseMerkleTree: leaf storage that only materializes non-empty nodes

Canonical Commitment Rules (Hard Contracts):
1. Empty leaf: the raw zero element, 32 zero bytes (EMPTY_LEAF)
2. Parent hashing: parent = sha256(left + right)
3. A tree of height H has 2^H leaves; a witness carries exactly H siblings
4. Witness siblings are ordered bottom-up; is_left[i] is True when the
   path node at level i is the left child of its parent
5. Leaf index bit i is 0 when is_left[i] is True, 1 otherwise
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator, Protocol

from core.crypto.hashing import DIGEST_SIZE, from_hex, hash_concat, to_hex


# Value of a leaf that holds no record
EMPTY_LEAF: bytes = bytes(DIGEST_SIZE)

# 1024 leaves
DEFAULT_HEIGHT: int = 10

MAX_HEIGHT: int = 64


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """Compute the parent hash of two child nodes: sha256(left + right)."""
    return hash_concat(left, right)


@lru_cache(maxsize=None)
def zero_hashes(height: int) -> tuple[bytes, ...]:
    """
    Roots of empty subtrees for levels 0..height.

    zero_hashes(h)[0] is EMPTY_LEAF and zero_hashes(h)[h] is the root of a
    completely empty tree of height h.
    """
    _check_height(height)
    levels = [EMPTY_LEAF]
    for _ in range(height):
        levels.append(merkle_parent(levels[-1], levels[-1]))
    return tuple(levels)


def empty_root(height: int = DEFAULT_HEIGHT) -> bytes:
    """Root of a tree of the given height with every leaf empty."""
    return zero_hashes(height)[height]


def _check_height(height: int) -> None:
    if not 1 <= height <= MAX_HEIGHT:
        raise ValueError(f"Tree height must be between 1 and {MAX_HEIGHT}, got {height}")


class LeafWitness(Protocol):
    """
    What the registry needs from a witness.

    Anything that can recompute a root from a claimed leaf value can stand
    in for MerkleWitness.
    """

    @property
    def height(self) -> int: ...

    def calculate_root(self, leaf: bytes) -> bytes: ...

    def calculate_index(self) -> int: ...


@dataclass(frozen=True)
class MerkleWitness:
    """
    Sibling path proving the value of one leaf against a root.

    Attributes:
        siblings: Sibling hashes from the leaf level up to just below the root
        is_left: For each level, whether the path node is the left child
    """
    siblings: tuple[bytes, ...]
    is_left: tuple[bool, ...]

    def __post_init__(self) -> None:
        """Validate witness structure."""
        if len(self.siblings) != len(self.is_left):
            raise ValueError(
                f"Witness has {len(self.siblings)} siblings but "
                f"{len(self.is_left)} direction bits"
            )
        _check_height(len(self.siblings))
        for i, sibling in enumerate(self.siblings):
            if len(sibling) != DIGEST_SIZE:
                raise ValueError(f"Sibling {i} must be {DIGEST_SIZE} bytes, got {len(sibling)}")

    @property
    def height(self) -> int:
        return len(self.siblings)

    def calculate_root(self, leaf: bytes) -> bytes:
        """
        Recompute the root implied by placing `leaf` at this witness's position.

        Algorithm:
        1. Start with the leaf value
        2. For each level (bottom-up):
           - If the path node is a left child: hash = parent(hash, sibling)
           - Otherwise: hash = parent(sibling, hash)
        3. The final hash is the root
        """
        current = leaf
        for sibling, left in zip(self.siblings, self.is_left):
            if left:
                current = merkle_parent(current, sibling)
            else:
                current = merkle_parent(sibling, current)
        return current

    def calculate_index(self) -> int:
        """Leaf index encoded by the direction bits."""
        index = 0
        for level, left in enumerate(self.is_left):
            if not left:
                index |= 1 << level
        return index

    def to_dict(self) -> dict[str, Any]:
        return {
            "siblings": [to_hex(s) for s in self.siblings],
            "is_left": list(self.is_left),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleWitness":
        return cls(
            siblings=tuple(from_hex(s) for s in data["siblings"]),
            is_left=tuple(bool(b) for b in data["is_left"]),
        )


def verify_witness(witness: LeafWitness, leaf: bytes, root: bytes) -> bool:
    """Check that `leaf` at the witness position is consistent with `root`."""
    return witness.calculate_root(leaf) == root


class SparseMerkleTree:
    """
    Fixed-height Merkle tree storing only nodes that differ from the
    empty-subtree defaults.

    Example:
        >>> tree = SparseMerkleTree(height=4)
        >>> tree.root == empty_root(4)
        True
        >>> tree.set_leaf(3, sha256(b"x"))
        >>> tree.witness(3).calculate_root(sha256(b"x")) == tree.root
        True
    """

    def __init__(self, height: int = DEFAULT_HEIGHT) -> None:
        _check_height(height)
        self.height = height
        self._zeros = zero_hashes(height)
        # (level, index) -> hash, level 0 being the leaves
        self._nodes: dict[tuple[int, int], bytes] = {}

    @property
    def capacity(self) -> int:
        return 1 << self.height

    @property
    def root(self) -> bytes:
        return self._node(self.height, 0)

    def _node(self, level: int, index: int) -> bytes:
        return self._nodes.get((level, index), self._zeros[level])

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.capacity:
            raise IndexError(f"Leaf index {index} out of range for {self.capacity} leaves")

    def get_leaf(self, index: int) -> bytes:
        self._check_index(index)
        return self._node(0, index)

    def set_leaf(self, index: int, value: bytes) -> None:
        """Write a leaf and recompute every node on its path to the root."""
        self._check_index(index)
        if len(value) != DIGEST_SIZE:
            raise ValueError(f"Leaf value must be {DIGEST_SIZE} bytes, got {len(value)}")

        current = value
        position = index
        for level in range(self.height + 1):
            if current == self._zeros[level]:
                self._nodes.pop((level, position), None)
            else:
                self._nodes[(level, position)] = current
            if level == self.height:
                break
            sibling = self._node(level, position ^ 1)
            if position % 2 == 0:
                current = merkle_parent(current, sibling)
            else:
                current = merkle_parent(sibling, current)
            position //= 2

    def witness(self, index: int) -> MerkleWitness:
        """Build the witness for the leaf at `index` against the current root."""
        self._check_index(index)
        siblings: list[bytes] = []
        is_left: list[bool] = []
        position = index
        for level in range(self.height):
            siblings.append(self._node(level, position ^ 1))
            is_left.append(position % 2 == 0)
            position //= 2
        return MerkleWitness(siblings=tuple(siblings), is_left=tuple(is_left))

    def leaves(self) -> Iterator[tuple[int, bytes]]:
        """Non-empty leaves in index order."""
        for (level, index) in sorted(k for k in self._nodes if k[0] == 0):
            yield index, self._nodes[(level, index)]


__all__ = [
    "EMPTY_LEAF",
    "DEFAULT_HEIGHT",
    "MAX_HEIGHT",
    "merkle_parent",
    "zero_hashes",
    "empty_root",
    "LeafWitness",
    "MerkleWitness",
    "verify_witness",
    "SparseMerkleTree",
]
