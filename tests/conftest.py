from typing import Dict, List, Sequence, Tuple

import pytest

from pass_claim.claims import ClaimEngine
from pass_claim.ledger import InMemoryDirectory, InMemoryLedger
from pass_claim.merkle import MerkleTree, build_allowlist_tree

PASS = "0x00000000000000000000000000000000000000ff"


class Allowlist:
    """A built tree plus proof lookup by (address, allowance)."""

    def __init__(self, entries: Sequence[Tuple[str, int]]) -> None:
        self.tree, self.leaves = build_allowlist_tree(entries)

    @property
    def root(self) -> bytes:
        return self.tree.root

    def proof(self, address: str) -> List[bytes]:
        proof = self.tree.proof(self.leaves[address])
        assert proof is not None
        return proof


@pytest.fixture
def make_allowlist():
    return Allowlist


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory()


@pytest.fixture
def make_engine(directory):
    def _make(root: bytes, capacity: int = 400, ledger: InMemoryLedger | None = None) -> ClaimEngine:
        return ClaimEngine(
            capacity=capacity,
            ledger=ledger if ledger is not None else InMemoryLedger(capacity),
            directory=directory,
            pass_id=PASS,
            merkle_root=root,
        )

    return _make
