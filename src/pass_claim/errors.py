from __future__ import annotations


class ClaimError(RuntimeError):
    """Base class for every rejected claim, reveal or admin call."""


class CapacityExceeded(ClaimError):
    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Capacity exceeded: requested {requested}, only {available} left."
        )


class AllowanceExceeded(ClaimError):
    def __init__(self, requested: int, remaining: int) -> None:
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Allowance exceeded: requested {requested}, remaining {remaining}."
        )


class InvalidProof(ClaimError):
    pass


class Unauthorized(ClaimError):
    pass


class InvariantViolation(ClaimError):
    pass


class RandomnessRequestFailed(ClaimError):
    pass


class RevealPending(ClaimError):
    pass


class UnknownToken(ClaimError):
    def __init__(self, token_id: int) -> None:
        self.token_id = token_id
        super().__init__(f"Token {token_id} has not been issued.")
