"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from registrations.domain import Capacity, EventId, RegistrationId, RegistrationStats, RegistrationStatus
from registrations.domain.errors import ErrorCode, EventFullError, InvalidTransitionError
from registrations.domain.transitions import can_transition, ensure_transition

from conftest import make_snapshot


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_positive_value(self):
        assert Capacity(3).value == 3

    def test_capacity_rejects_zero(self):
        with pytest.raises(ValueError):
            Capacity(0)

    def test_capacity_rejects_negative_value(self):
        with pytest.raises(ValueError):
            Capacity(-1)

    def test_admits_only_below_capacity(self):
        capacity = Capacity(2)
        assert capacity.admits(1)
        assert not capacity.admits(2)


class TestIdentifiers:
    """Tests for EventId and RegistrationId value objects."""

    def test_from_string_valid_uuid(self):
        raw = uuid.uuid4()
        assert EventId.from_string(str(raw)).value == raw
        assert str(RegistrationId.from_string(str(raw))) == str(raw)

    def test_from_string_invalid_uuid(self):
        with pytest.raises(ValueError):
            EventId.from_string("not-a-uuid")

    def test_ids_compare_by_value(self):
        raw = uuid.uuid4()
        assert EventId(raw) == EventId.from_string(str(raw))
        assert len({EventId(raw), EventId(raw)}) == 1


class TestEventSnapshot:
    """Tests for derived event flags."""

    def test_is_full_when_approved_count_reaches_capacity(self):
        assert make_snapshot(capacity=2, approved_count=2).is_full
        assert not make_snapshot(capacity=2, approved_count=1).is_full

    def test_registration_open_requires_active_and_before_deadline(self):
        now = datetime.now(UTC)
        snapshot = make_snapshot(registration_deadline=now + timedelta(hours=1))
        assert snapshot.is_registration_open(now)
        assert not snapshot.is_registration_open(now + timedelta(hours=2))

        inactive = make_snapshot(is_active=False, registration_deadline=now + timedelta(hours=1))
        assert not inactive.is_registration_open(now)


class TestTransitions:
    """Tests for the registration state machine table."""

    @pytest.mark.parametrize(
        "target",
        [RegistrationStatus.APPROVED, RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED],
    )
    def test_pending_moves_to_any_resolution(self, target):
        assert can_transition(RegistrationStatus.PENDING, target)

    def test_approved_can_only_be_cancelled(self):
        assert can_transition(RegistrationStatus.APPROVED, RegistrationStatus.CANCELLED)
        assert not can_transition(RegistrationStatus.APPROVED, RegistrationStatus.APPROVED)
        assert not can_transition(RegistrationStatus.APPROVED, RegistrationStatus.REJECTED)

    @pytest.mark.parametrize("terminal", [RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED])
    def test_terminal_states_have_no_exit(self, terminal):
        for target in RegistrationStatus:
            assert not can_transition(terminal, target)

    def test_ensure_transition_raises_with_both_states(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED)
        assert exc_info.value.code is ErrorCode.INVALID_TRANSITION
        assert exc_info.value.current == "rejected"
        assert exc_info.value.target == "cancelled"

    def test_active_statuses(self):
        assert RegistrationStatus.PENDING.is_active
        assert RegistrationStatus.APPROVED.is_active
        assert not RegistrationStatus.REJECTED.is_active
        assert not RegistrationStatus.CANCELLED.is_active


def test_stats_total_sums_every_status():
    stats = RegistrationStats(pending=2, approved=1, rejected=1, cancelled=3)
    assert stats.total == 7


def test_domain_error_str_includes_code():
    assert str(EventFullError("abc")) == "EVENT_FULL: Event is full"
