"""Sorted-pair Merkle commitments over (address, allowance) pairs.

Parents are sha256 of the two children concatenated in ascending byte
order, so a proof is just the list of sibling hashes with no left/right
flags. An unpaired node at the end of a level is carried up unchanged.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .addresses import address_bytes
from .project_constants import ALLOWANCE_BYTES, LEAF_SEPARATOR

EMPTY_ROOT = hashlib.sha256(b"").digest()


def hash_pair(a: bytes, b: bytes) -> bytes:
    if a <= b:
        return hashlib.sha256(a + b).digest()
    return hashlib.sha256(b + a).digest()


def verify(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed == root


def allowance_leaf(address: str, allowance: int) -> bytes:
    """Raises ValueError when the allowance does not fit the fixed-width encoding."""
    if allowance < 0 or allowance >= 1 << (8 * ALLOWANCE_BYTES):
        raise ValueError(f"Allowance out of range: {allowance}")
    data = address_bytes(address) + LEAF_SEPARATOR + allowance.to_bytes(ALLOWANCE_BYTES, "big")
    return hashlib.sha256(data).digest()


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def from_hex(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value[:2] in ("0x", "0X") else value)


@dataclass(frozen=True)
class MerkleTree:
    levels: Tuple[Tuple[bytes, ...], ...]

    @staticmethod
    def from_leaves(leaves: Iterable[bytes]) -> "MerkleTree":
        level = tuple(sorted(set(leaves)))
        if not level:
            return MerkleTree(levels=())

        levels = [level]
        while len(level) > 1:
            nxt: List[bytes] = []
            for i in range(0, len(level), 2):
                if i + 1 < len(level):
                    nxt.append(hash_pair(level[i], level[i + 1]))
                else:
                    nxt.append(level[i])
            level = tuple(nxt)
            levels.append(level)
        return MerkleTree(levels=tuple(levels))

    @property
    def root(self) -> bytes:
        if not self.levels:
            return EMPTY_ROOT
        return self.levels[-1][0]

    @property
    def leaves(self) -> Tuple[bytes, ...]:
        return self.levels[0] if self.levels else ()

    def proof(self, leaf: bytes) -> Optional[List[bytes]]:
        """Sibling path for leaf, or None if it is not in the tree."""
        if leaf not in self.leaves:
            return None

        idx = self.leaves.index(leaf)
        path: List[bytes] = []
        for level in self.levels[:-1]:
            sibling = idx ^ 1
            if sibling < len(level):
                path.append(level[sibling])
            idx //= 2
        return path


def build_allowlist_tree(entries: Sequence[Tuple[str, int]]) -> Tuple[MerkleTree, Dict[str, bytes]]:
    """Returns the tree plus the leaf computed for every address."""
    leaf_by_address = {addr: allowance_leaf(addr, allowance) for addr, allowance in entries}
    return MerkleTree.from_leaves(leaf_by_address.values()), leaf_by_address
