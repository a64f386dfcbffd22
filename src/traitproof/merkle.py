"""Merkle tree over a batch of bundle leaves.

Commitment rules:
1. Leaf hashing: SHA256(beta || context), context being the VRF alpha
2. Parent hashing: SHA256(left || right)
3. Padding: duplicate the last node when a level has an odd count
4. Single leaf: root = leaf
5. Empty batch or repeated leaf: rejected

With rule 3 the direction of every proof step is fixed by the leaf index,
so ``verify_merkle_proof`` also checks directions against the index bits.
A left sibling equal to the running hash can only be a padding copy, so
such a step is rejected: it would place the leaf at a position past the
end of the batch.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .encoding import decode_hex, require, require_int
from .exceptions import MalformedBundleError, MerklePathInvalidError

HASH_SIZE = 32


class Direction(StrEnum):
    """Side of the sibling relative to the running hash."""

    LEFT = "left"
    RIGHT = "right"


def hash_leaf(beta: bytes, context: bytes) -> bytes:
    return hashlib.sha256(beta + context).digest()


def hash_pair(left: bytes, right: bytes) -> bytes:
    return hashlib.sha256(left + right).digest()


# =============================================================================
# PROOF
# =============================================================================


@dataclass(frozen=True)
class MerkleStep:
    """One level of an inclusion proof."""

    sibling: bytes
    direction: Direction

    def to_dict(self) -> dict[str, str]:
        return {"sibling": self.sibling.hex(), "direction": self.direction.value}

    @classmethod
    def from_dict(cls, data: Any, prefix: str = "") -> MerkleStep:
        direction = require(data, "direction", str, prefix)
        try:
            direction_enum = Direction(direction)
        except ValueError as e:
            raise MalformedBundleError(f"field {prefix}direction has unknown value {direction!r}") from e
        return cls(sibling=decode_hex(data, "sibling", HASH_SIZE, prefix), direction=direction_enum)


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof for the leaf at ``index`` under ``root``."""

    root: bytes
    leaf: bytes
    path: tuple[MerkleStep, ...]
    index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root.hex(),
            "leaf": self.leaf.hex(),
            "path": [step.to_dict() for step in self.path],
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: Any, prefix: str = "merkle_proof.") -> MerkleProof:
        raw_path = require(data, "path", list, prefix)
        return cls(
            root=decode_hex(data, "root", HASH_SIZE, prefix),
            leaf=decode_hex(data, "leaf", HASH_SIZE, prefix),
            path=tuple(MerkleStep.from_dict(step, f"{prefix}path[{i}].") for i, step in enumerate(raw_path)),
            index=require_int(data, "index", prefix, minimum=0),
        )


# =============================================================================
# TREE
# =============================================================================


class MerkleTree:
    """Binary SHA-256 tree over an ordered, non-empty list of 32-byte leaves."""

    def __init__(self, leaves: Sequence[bytes]):
        if not leaves:
            raise ValueError("cannot build a Merkle tree with no leaves")
        for i, leaf in enumerate(leaves):
            if len(leaf) != HASH_SIZE:
                raise ValueError(f"leaf {i} must be {HASH_SIZE} bytes, got {len(leaf)}")
        if len(set(leaves)) != len(leaves):
            raise ValueError("Merkle leaves must be distinct")

        self.levels: list[list[bytes]] = [list(leaves)]
        while len(self.levels[-1]) > 1:
            level = self.levels[-1]
            if len(level) % 2 == 1:
                level = level + [level[-1]]
            self.levels.append([hash_pair(level[i], level[i + 1]) for i in range(0, len(level), 2)])

    def __len__(self) -> int:
        return len(self.levels[0])

    @property
    def leaves(self) -> list[bytes]:
        return list(self.levels[0])

    @property
    def root(self) -> bytes:
        return self.levels[-1][0]

    @property
    def depth(self) -> int:
        return len(self.levels) - 1

    def proof(self, index: int) -> MerkleProof:
        """Build the inclusion proof for the leaf at ``index``."""
        if not 0 <= index < len(self):
            raise IndexError(f"leaf index {index} out of range for {len(self)} leaves")

        path = []
        position = index
        for level in self.levels[:-1]:
            if position % 2 == 0:
                sibling_pos = position + 1 if position + 1 < len(level) else position
                path.append(MerkleStep(sibling=level[sibling_pos], direction=Direction.RIGHT))
            else:
                path.append(MerkleStep(sibling=level[position - 1], direction=Direction.LEFT))
            position //= 2
        return MerkleProof(root=self.root, leaf=self.levels[0][index], path=tuple(path), index=index)


# =============================================================================
# VERIFICATION
# =============================================================================


def compute_root(leaf: bytes, path: Sequence[MerkleStep]) -> bytes:
    """Fold a path from the leaf upward."""
    current = leaf
    for step in path:
        if step.direction == Direction.LEFT:
            current = hash_pair(step.sibling, current)
        else:
            current = hash_pair(current, step.sibling)
    return current


def verify_merkle_path(leaf: bytes, path: Sequence[MerkleStep], root: bytes) -> bool:
    """True iff folding the path from the leaf reproduces the root exactly."""
    return hmac.compare_digest(compute_root(leaf, path), root)


def check_merkle_proof(proof: MerkleProof) -> None:
    """Raise MerklePathInvalidError unless the proof is consistent and verifies."""
    if proof.index >> len(proof.path):
        raise MerklePathInvalidError(f"index {proof.index} does not fit a path of length {len(proof.path)}")
    current = proof.leaf
    for level, step in enumerate(proof.path):
        expected = Direction.LEFT if (proof.index >> level) & 1 else Direction.RIGHT
        if step.direction != expected:
            raise MerklePathInvalidError(f"direction at level {level} disagrees with index {proof.index}")
        if step.direction == Direction.LEFT:
            if step.sibling == current:
                raise MerklePathInvalidError(f"index {proof.index} lies in the padding at level {level}")
            current = hash_pair(step.sibling, current)
        else:
            current = hash_pair(current, step.sibling)
    if not hmac.compare_digest(current, proof.root):
        raise MerklePathInvalidError("path does not reconstruct the claimed root")


def verify_merkle_proof(proof: MerkleProof) -> bool:
    try:
        check_merkle_proof(proof)
    except MerklePathInvalidError:
        return False
    return True


__all__ = [
    "Direction",
    "HASH_SIZE",
    "MerkleProof",
    "MerkleStep",
    "MerkleTree",
    "check_merkle_proof",
    "compute_root",
    "hash_leaf",
    "hash_pair",
    "verify_merkle_path",
    "verify_merkle_proof",
]
