from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Protocol, Sequence

from .addresses import canonical_address
from .errors import AllowanceExceeded, CapacityExceeded, InvalidProof
from .merkle import allowance_leaf, to_hex, verify
from .project_constants import (
    ALLOWANCE_BYTES,
    DELEGATION_INCLUDE_CALLER,
    DELEGATION_INCLUDE_EXPIRED,
    DELEGATION_MIN_COUNT,
)

log = logging.getLogger("claim")


class DelegationDirectory(Protocol):
    def resolve(
        self,
        caller: str,
        pass_id: str,
        min_count: int,
        include_caller: bool,
        include_expired: bool,
    ) -> List[str]: ...


class IssuanceLedger(Protocol):
    def issue(self, recipient: str, count: int) -> None: ...

    def total_issued(self) -> int: ...


@dataclass(frozen=True)
class ClaimReceipt:
    caller: str
    source: str
    amount: int
    claimed_total: int
    remaining: int


@dataclass(frozen=True)
class Claimed:
    caller: str
    source: str
    amount: int


class ClaimEngine:
    """
    Checks one (proof, allowance) pair against every source the caller may act for.
    The first source whose leaf verifies is charged; its outcome is final.
    """

    def __init__(
        self,
        capacity: int,
        ledger: IssuanceLedger,
        directory: DelegationDirectory,
        pass_id: str,
        merkle_root: bytes,
        min_count: int = DELEGATION_MIN_COUNT,
        include_caller: bool = DELEGATION_INCLUDE_CALLER,
        include_expired: bool = DELEGATION_INCLUDE_EXPIRED,
    ) -> None:
        self.capacity = capacity
        self.ledger = ledger
        self.directory = directory
        self.pass_id = pass_id
        self.merkle_root = merkle_root
        self.min_count = min_count
        self.include_caller = include_caller
        self.include_expired = include_expired
        self._claimed: Dict[str, int] = defaultdict(int)
        self.events: List[Claimed] = []

    def claimed(self, source: str) -> int:
        return self._claimed.get(canonical_address(source), 0)

    def set_root(self, merkle_root: bytes) -> None:
        # Recorded claims stay recorded
        log.info("Merkle root: %s -> %s", to_hex(self.merkle_root), to_hex(merkle_root))
        self.merkle_root = merkle_root

    def claim(
        self,
        caller: str,
        proof: Sequence[bytes],
        amount: int,
        allowance: int,
    ) -> ClaimReceipt:
        if amount <= 0:
            raise ValueError(f"Claim amount must be positive, got {amount}")

        sources = self.directory.resolve(
            caller,
            self.pass_id,
            self.min_count,
            self.include_caller,
            self.include_expired,
        )
        log.debug("Caller %s resolves to %d source(s)", caller, len(sources))

        issued = self.ledger.total_issued()
        if issued + amount > self.capacity:
            raise CapacityExceeded(amount, self.capacity - issued)

        if allowance < 0 or allowance >= 1 << (8 * ALLOWANCE_BYTES):
            raise InvalidProof(f"Allowance {allowance} cannot be committed.")

        for source in sources:
            try:
                leaf = allowance_leaf(source, allowance)
            except ValueError as e:
                # An address that cannot be encoded simply does not verify
                log.warning("Skipping source %r: %s", source, e)
                continue
            if verify(proof, self.merkle_root, leaf):
                return self._charge(caller, canonical_address(source), amount, allowance)

        raise InvalidProof(f"No source of {caller} matches the proof for allowance {allowance}.")

    def _charge(self, caller: str, source: str, amount: int, allowance: int) -> ClaimReceipt:
        already = self._claimed.get(source, 0)
        if already + amount > allowance:
            raise AllowanceExceeded(amount, allowance - already)

        self.ledger.issue(caller, amount)
        self._claimed[source] = already + amount

        event = Claimed(caller=caller, source=source, amount=amount)
        self.events.append(event)
        log.info("Claimed %d for %s on behalf of %s", amount, caller, source)

        return ClaimReceipt(
            caller=caller,
            source=source,
            amount=amount,
            claimed_total=already + amount,
            remaining=allowance - already - amount,
        )
