from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from .errors import RevealPending

log = logging.getLogger("reveal")


class RandomnessOracle(Protocol):
    def request(self, seed: str, fee: int) -> str:
        """Submit a request and return its id. Raises RandomnessRequestFailed."""
        ...


@dataclass
class RevealState:
    revealed: bool = False
    random_offset: int = 0
    pending_request_id: Optional[str] = None
    fulfilled_request_id: Optional[str] = None


@dataclass(frozen=True)
class Revealed:
    request_id: str
    offset: int


class RevealStateMachine:
    """
    Hidden -> awaiting randomness -> revealed.

    By default an offset of 0 means "not finalized", so a random value that
    is a multiple of the capacity leaves the machine hidden. Pass
    track_finalized=True to finalize on the first callback regardless.
    reject_pending=True refuses a second trigger while a request is outstanding.
    """

    def __init__(
        self,
        capacity: int,
        oracle: RandomnessOracle,
        key_hash: str,
        fee: int,
        track_finalized: bool = False,
        reject_pending: bool = False,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.oracle = oracle
        self.key_hash = key_hash
        self.fee = fee
        self.track_finalized = track_finalized
        self.reject_pending = reject_pending
        self.state = RevealState()
        self.events: List[Revealed] = []

    @property
    def revealed(self) -> bool:
        return self.state.revealed

    @property
    def random_offset(self) -> int:
        return self.state.random_offset

    def trigger(self) -> Optional[str]:
        if self.state.revealed:
            log.debug("Reveal already finalized; trigger ignored.")
            return None
        if self.reject_pending and self.state.pending_request_id is not None:
            raise RevealPending(f"Request {self.state.pending_request_id} is still outstanding.")

        request_id = self.oracle.request(self.key_hash, self.fee)
        if self.state.pending_request_id is not None:
            log.warning(
                "Superseding outstanding request %s with %s",
                self.state.pending_request_id,
                request_id,
            )
        self.state.pending_request_id = request_id
        log.info("Randomness requested: %s (fee %d)", request_id, self.fee)
        return request_id

    def _finalized(self) -> bool:
        if self.track_finalized:
            return self.state.revealed
        return self.state.random_offset != 0

    def fulfill(self, request_id: str, random_value: int) -> None:
        self.state.fulfilled_request_id = request_id
        if self.state.pending_request_id == request_id:
            self.state.pending_request_id = None
        if self._finalized():
            log.debug("Late randomness for %s ignored.", request_id)
            return

        offset = random_value % self.capacity
        if offset == 0 and not self.track_finalized:
            log.warning("Randomness for %s reduced to 0; reveal stays hidden.", request_id)
            return

        self.state.random_offset = offset
        self.state.revealed = True
        self.state.pending_request_id = None
        self.events.append(Revealed(request_id=request_id, offset=offset))
        log.info("Revealed with offset %d (request %s)", offset, request_id)

    def metadata_index(self, token_id: int) -> Optional[int]:
        if not self.state.revealed:
            return None
        return (token_id + self.state.random_offset) % self.capacity
