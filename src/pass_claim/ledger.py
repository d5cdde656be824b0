from __future__ import annotations

import hashlib
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .addresses import canonical_address
from .errors import CapacityExceeded, RandomnessRequestFailed


class InMemoryLedger:
    """Fixed-supply ledger; token ids are assigned sequentially from 0."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._owners: List[str] = []
        self._balances: Dict[str, int] = defaultdict(int)

    def total_issued(self) -> int:
        return len(self._owners)

    def issue(self, recipient: str, count: int) -> None:
        if count <= 0:
            raise ValueError(f"Issue count must be positive, got {count}")
        if len(self._owners) + count > self.capacity:
            raise CapacityExceeded(count, self.capacity - len(self._owners))
        owner = canonical_address(recipient)
        self._owners.extend([owner] * count)
        self._balances[owner] += count

    def owner_of(self, token_id: int) -> str:
        if token_id < 0 or token_id >= len(self._owners):
            raise KeyError(token_id)
        return self._owners[token_id]

    def balance_of(self, holder: str) -> int:
        return self._balances.get(canonical_address(holder), 0)


@dataclass(frozen=True)
class DelegationLink:
    cold: str
    hot: str
    expired: bool = False


class InMemoryDirectory:
    """
    Maps a hot (calling) wallet to the cold wallets that linked it.
    Pass holdings decide which of them count as sources.
    """

    def __init__(self) -> None:
        self._links: List[DelegationLink] = []
        self._holdings: Dict[Tuple[str, str], int] = defaultdict(int)

    def link(self, cold: str, hot: str, expired: bool = False) -> None:
        self._links.append(DelegationLink(canonical_address(cold), canonical_address(hot), expired))

    def set_holding(self, holder: str, pass_id: str, count: int) -> None:
        self._holdings[(canonical_address(holder), pass_id)] = count

    def resolve(
        self,
        caller: str,
        pass_id: str,
        min_count: int,
        include_caller: bool,
        include_expired: bool,
    ) -> List[str]:
        hot = canonical_address(caller)
        candidates: List[str] = [hot] if include_caller else []
        for link in self._links:
            if link.hot != hot:
                continue
            if link.expired and not include_expired:
                continue
            if link.cold not in candidates:
                candidates.append(link.cold)
        return [c for c in candidates if self._holdings.get((c, pass_id), 0) >= min_count]


class LocalRandomnessOracle:
    """Records requests; tests and `pass-claim preview` answer them through the reveal callback."""

    def __init__(self, fee_balance: int = 0) -> None:
        self.fee_balance = fee_balance
        self.requests: List[Tuple[str, str, int]] = []

    def request(self, seed: str, fee: int) -> str:
        if fee > self.fee_balance:
            raise RandomnessRequestFailed(
                f"Not enough fee balance: need {fee}, have {self.fee_balance}"
            )
        self.fee_balance -= fee
        request_id = "0x" + hashlib.sha256(f"{seed}:{len(self.requests)}".encode("utf-8")).hexdigest()
        self.requests.append((request_id, seed, fee))
        return request_id

    @property
    def last_request_id(self) -> Optional[str]:
        return self.requests[-1][0] if self.requests else None
