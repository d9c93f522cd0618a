"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from registrations.domain import (
    EventId,
    EventSnapshot,
    Registration,
    RegistrationId,
    RegistrationStats,
    RegistrationStatus,
)


class RegistrationStore(ABC):
    """Interface for registration persistence.

    compare_and_set_status is the only way a stored status ever changes.
    """

    @abstractmethod
    def create_pending(
        self, event_id: EventId, participant_id: str, note: str, created_at: datetime
    ) -> Registration:
        """Insert a pending registration.

        Raises:
            DuplicateActiveRegistrationError: If the participant already has
                a pending or approved registration for the event.
        """
        ...

    @abstractmethod
    def get(self, registration_id: RegistrationId) -> Registration | None:
        """Return a registration by ID, or None if not found."""
        ...

    @abstractmethod
    def find_active(self, event_id: EventId, participant_id: str) -> Registration | None:
        """Return the participant's pending or approved registration, if any."""
        ...

    @abstractmethod
    def compare_and_set_status(
        self,
        registration_id: RegistrationId,
        expected: RegistrationStatus,
        new: RegistrationStatus,
        decided_by: str | None,
        decided_at: datetime | None = None,
        rejection_reason: str | None = None,
    ) -> Registration:
        """Move a registration from `expected` to `new` in one conditional write.

        Raises:
            RegistrationNotFoundError: If the registration does not exist.
            ConflictStaleError: If the stored status is no longer `expected`.
        """
        ...

    @abstractmethod
    def count_by_status(self, event_id: EventId, status: RegistrationStatus) -> int:
        """Count an event's registrations in the given status."""
        ...

    @abstractmethod
    def delete_if_pending(self, registration_id: RegistrationId) -> bool:
        """Delete the registration only while it is pending. Return True if deleted."""
        ...

    @abstractmethod
    def list_for_event(
        self, event_id: EventId, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        """Return an event's registrations, newest first."""
        ...

    @abstractmethod
    def list_for_participant(
        self, participant_id: str, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        """Return a participant's registrations, newest first."""
        ...

    @abstractmethod
    def stats_for_event(self, event_id: EventId) -> RegistrationStats:
        """Return registration totals per status for an event."""
        ...

    @abstractmethod
    def stats_for_events(self, event_ids: list[EventId]) -> RegistrationStats:
        """Return registration totals per status summed over several events."""
        ...

    @abstractmethod
    def global_stats(self) -> RegistrationStats:
        """Return registration totals per status over every event."""
        ...


class CapacityLedger(ABC):
    """Per-event approved-slot counter used for admission control.

    The counter is a fast-path cache; the reconciler overwrites it with the
    count derived from the registration store.
    """

    @abstractmethod
    def try_reserve_slot(self, event_id: EventId) -> bool:
        """Atomically increment the counter if it is below capacity.

        Returns False when the event has no slot left.
        """
        ...

    @abstractmethod
    def release_slot(self, event_id: EventId) -> None:
        """Atomically decrement the counter, never below zero."""
        ...

    @abstractmethod
    def current_count(self, event_id: EventId) -> int | None:
        """Return the counter, or None if the event does not exist."""
        ...

    @abstractmethod
    def overwrite(self, event_id: EventId, approved_count: int) -> None:
        """Unconditionally replace the counter. Used by reconciliation only."""
        ...

    @abstractmethod
    def event_ids(self) -> list[EventId]:
        """Return every event the ledger tracks."""
        ...

    @abstractmethod
    def locked(self, event_id: EventId) -> AbstractContextManager[None]:
        """Serialize a unit of work against other writers of this event's counter."""
        ...


class EventProvider(ABC):
    """Read access to event metadata owned by the event catalog."""

    @abstractmethod
    def get_event(self, event_id: EventId) -> EventSnapshot | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def event_ids_for_organizer(self, organizer_id: str) -> list[EventId]:
        """Return the IDs of the events the organizer runs."""
        ...


class Authorizer(ABC):
    """Decides whether an actor may approve or reject for an event."""

    @abstractmethod
    def is_authorized_to_decide(self, actor_id: str, event_id: EventId) -> bool:
        ...
