"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in registrations/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from registrations.domain.value_objects import Capacity, EventId, RegistrationId


class RegistrationStatus(str, Enum):
    """Lifecycle states of a registration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset({RegistrationStatus.PENDING, RegistrationStatus.APPROVED})


@dataclass(frozen=True)
class EventSnapshot:
    """The subset of an Event the registration workflow consults."""

    id: EventId
    capacity: Capacity
    approved_count: int
    registration_deadline: datetime
    is_active: bool
    organizer_id: str | None = None

    @property
    def is_full(self) -> bool:
        return not self.capacity.admits(self.approved_count)

    def is_registration_open(self, now: datetime) -> bool:
        return self.is_active and now < self.registration_deadline


@dataclass(frozen=True)
class Registration:
    """Domain representation of a Registration."""

    id: RegistrationId
    event_id: EventId
    participant_id: str
    status: RegistrationStatus
    created_at: datetime
    note: str = ""
    decided_by: str | None = None
    decided_at: datetime | None = None
    rejection_reason: str | None = None


@dataclass(frozen=True)
class RegistrationStats:
    """Registration totals per status."""

    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected + self.cancelled


@dataclass(frozen=True)
class OrganizerStats:
    """Registration totals across every event one organizer runs."""

    total_events: int
    registrations: RegistrationStats


class ChangeKind(str, Enum):
    """Kinds of facts published after a committed change."""

    REGISTERED = "new-registration"
    APPROVED = "registration-approved"
    REJECTED = "registration-rejected"
    CANCELLED = "registration-cancelled"
    WITHDRAWN = "registration-withdrawn"
    RECONCILED = "registration-reconciled"


@dataclass(frozen=True)
class RegistrationChange:
    """A fact about a committed transition, fanned out to event subscribers."""

    event_id: EventId
    kind: ChangeKind
    approved_count: int
    occurred_at: datetime
    registration_id: RegistrationId | None = None
    status: RegistrationStatus | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of recomputing one event's approved count."""

    event_id: EventId
    previous_count: int
    approved_count: int

    @property
    def drifted(self) -> bool:
        return self.previous_count != self.approved_count
