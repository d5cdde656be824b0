"""Tests for the reveal state machine: single finalization, sentinel offset, oracle failures."""

import pytest

from pass_claim.errors import RandomnessRequestFailed, RevealPending
from pass_claim.ledger import LocalRandomnessOracle
from pass_claim.reveal import RevealStateMachine

KEY_HASH = "0x" + "ab" * 32
FEE = 2


def _machine(capacity: int = 400, fee_balance: int = 100, **kwargs) -> RevealStateMachine:
    return RevealStateMachine(capacity, LocalRandomnessOracle(fee_balance), KEY_HASH, FEE, **kwargs)


class TestTrigger:
    def test_records_pending_request(self) -> None:
        m = _machine()
        request_id = m.trigger()
        assert request_id is not None
        assert m.state.pending_request_id == request_id
        assert m.oracle.requests == [(request_id, KEY_HASH, FEE)]
        assert not m.revealed

    def test_retrigger_issues_independent_request(self) -> None:
        m = _machine()
        first = m.trigger()
        second = m.trigger()
        assert first != second
        assert len(m.oracle.requests) == 2

    def test_reject_pending_refuses_second_request(self) -> None:
        m = _machine(reject_pending=True)
        m.trigger()
        with pytest.raises(RevealPending):
            m.trigger()
        assert len(m.oracle.requests) == 1

    def test_oracle_failure_propagates(self) -> None:
        m = _machine(fee_balance=1)
        with pytest.raises(RandomnessRequestFailed):
            m.trigger()
        assert m.state.pending_request_id is None

    def test_trigger_after_reveal_is_noop(self) -> None:
        m = _machine()
        m.fulfill(m.trigger(), 1234)
        assert m.trigger() is None
        assert len(m.oracle.requests) == 1


class TestFulfill:
    def test_sets_offset_and_reveals(self) -> None:
        m = _machine()
        request_id = m.trigger()
        m.fulfill(request_id, 1234)
        assert m.revealed
        assert m.random_offset == 34
        assert m.state.pending_request_id is None
        assert [(e.request_id, e.offset) for e in m.events] == [(request_id, 34)]

    def test_later_callbacks_are_ignored(self) -> None:
        m = _machine()
        first = m.trigger()
        second = m.trigger()
        m.fulfill(first, 1234)
        m.fulfill(second, 77)
        m.fulfill(first, 99)
        assert m.random_offset == 34
        assert len(m.events) == 1
        assert m.state.fulfilled_request_id == first

    def test_zero_residue_leaves_machine_hidden(self) -> None:
        m = _machine()
        m.fulfill(m.trigger(), 800)
        assert not m.revealed
        assert m.random_offset == 0
        assert m.events == []
        assert m.metadata_index(3) is None

        # A later callback can still finalize
        m.fulfill(m.trigger(), 405)
        assert m.revealed
        assert m.random_offset == 5

    def test_track_finalized_reveals_with_zero_offset(self) -> None:
        m = _machine(track_finalized=True)
        m.fulfill(m.trigger(), 800)
        assert m.revealed
        assert m.random_offset == 0
        m.fulfill("0xlate", 5)
        assert m.random_offset == 0
        assert len(m.events) == 1

    def test_unsolicited_callback_still_finalizes(self) -> None:
        m = _machine()
        m.fulfill("0xunknown", 7)
        assert m.revealed
        assert m.random_offset == 7


class TestMetadataIndex:
    def test_hidden_before_reveal(self) -> None:
        m = _machine()
        assert m.metadata_index(0) is None

    def test_shifted_and_wrapped(self) -> None:
        m = _machine(capacity=10)
        m.fulfill(m.trigger(), 7)
        assert [m.metadata_index(t) for t in range(4)] == [7, 8, 9, 0]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        _machine(capacity=0)
