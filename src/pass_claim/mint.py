from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from .addresses import canonical_address
from .claims import ClaimEngine, ClaimReceipt, DelegationDirectory, IssuanceLedger
from .config import Settings
from .errors import InvariantViolation, Unauthorized, UnknownToken
from .merkle import EMPTY_ROOT
from .project_constants import BASE_EXTENSION
from .reveal import RandomnessOracle, RevealStateMachine

log = logging.getLogger("mint")


class PassClaimMint:
    """
    Authority-gated surface over the claim engine and the reveal.
    Every call runs under one lock, so each either completes or raises with no effect.
    """

    def __init__(
        self,
        owner: str,
        capacity: int,
        ledger: IssuanceLedger,
        directory: DelegationDirectory,
        oracle: RandomnessOracle,
        oracle_coordinator: str,
        pass_id: str,
        key_hash: str,
        fee: int,
        merkle_root: bytes = EMPTY_ROOT,
        placeholder_uri: str = "",
        track_finalized: bool = False,
        reject_pending: bool = False,
    ) -> None:
        self.owner = canonical_address(owner)
        self.oracle_coordinator = canonical_address(oracle_coordinator)
        self.ledger = ledger
        self.engine = ClaimEngine(capacity, ledger, directory, pass_id, merkle_root)
        self.reveal_machine = RevealStateMachine(
            capacity,
            oracle,
            key_hash,
            fee,
            track_finalized=track_finalized,
            reject_pending=reject_pending,
        )
        self.base_uri = ""
        self.placeholder_uri = placeholder_uri
        self.balance = 0
        self._lock = threading.Lock()

    @staticmethod
    def from_settings(
        settings: Settings,
        owner: str,
        ledger: IssuanceLedger,
        directory: DelegationDirectory,
        oracle: RandomnessOracle,
        oracle_coordinator: str,
        **kwargs,
    ) -> "PassClaimMint":
        return PassClaimMint(
            owner=owner,
            capacity=settings.capacity,
            ledger=ledger,
            directory=directory,
            oracle=oracle,
            oracle_coordinator=oracle_coordinator,
            pass_id=settings.pass_id,
            key_hash=settings.oracle_key_hash,
            fee=settings.oracle_fee,
            **kwargs,
        )

    def _only_owner(self, caller: str) -> None:
        if canonical_address(caller) != self.owner:
            raise Unauthorized(f"{caller} is not the owner.")

    # Claims

    def claim(self, caller: str, proof: Sequence[bytes], amount: int, allowance: int) -> ClaimReceipt:
        with self._lock:
            return self.engine.claim(caller, proof, amount, allowance)

    # Reveal

    def reveal(self, caller: str) -> Optional[str]:
        with self._lock:
            self._only_owner(caller)
            return self.reveal_machine.trigger()

    def fulfill(self, caller: str, request_id: str, random_value: int) -> None:
        with self._lock:
            if canonical_address(caller) != self.oracle_coordinator:
                raise Unauthorized(f"Only the oracle coordinator can fulfill, not {caller}.")
            self.reveal_machine.fulfill(request_id, random_value)

    # Admin

    def set_base_uri(self, caller: str, base_uri: str) -> None:
        with self._lock:
            self._only_owner(caller)
            if self.reveal_machine.revealed:
                raise InvariantViolation("Base URI is frozen once revealed.")
            self.base_uri = base_uri

    def set_placeholder_uri(self, caller: str, placeholder_uri: str) -> None:
        with self._lock:
            self._only_owner(caller)
            self.placeholder_uri = placeholder_uri

    def set_merkle_root(self, caller: str, merkle_root: bytes) -> None:
        with self._lock:
            self._only_owner(caller)
            self.engine.set_root(merkle_root)

    def receive(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot receive a negative amount: {amount}")
        with self._lock:
            self.balance += amount

    def withdraw(self, caller: str) -> int:
        with self._lock:
            self._only_owner(caller)
            amount, self.balance = self.balance, 0
            log.info("Withdrew %d to %s", amount, self.owner)
            return amount

    # Reads

    @property
    def merkle_root(self) -> bytes:
        return self.engine.merkle_root

    @property
    def revealed(self) -> bool:
        return self.reveal_machine.revealed

    @property
    def random_offset(self) -> int:
        return self.reveal_machine.random_offset

    def claimed(self, source: str) -> int:
        return self.engine.claimed(source)

    def token_uri(self, token_id: int) -> str:
        if token_id < 0 or token_id >= self.ledger.total_issued():
            raise UnknownToken(token_id)

        index = self.reveal_machine.metadata_index(token_id)
        if index is None:
            return self.placeholder_uri
        if not self.base_uri:
            return ""
        return f"{self.base_uri}{index}{BASE_EXTENSION}"
