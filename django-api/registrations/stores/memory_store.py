"""Thread-safe in-process store implementations.

Used where no database is available and by the concurrency tests, which
need real parallel writers without a transactional backend.
"""

import dataclasses
import threading
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime

from registrations.domain import (
    EventId,
    EventSnapshot,
    Registration,
    RegistrationId,
    RegistrationStats,
    RegistrationStatus,
)
from registrations.domain.errors import (
    ConflictStaleError,
    DuplicateActiveRegistrationError,
    RegistrationNotFoundError,
)
from registrations.stores.interfaces import (
    Authorizer,
    CapacityLedger,
    EventProvider,
    RegistrationStore,
)


class InMemoryRegistrationStore(RegistrationStore):
    """Registrations kept in a dict guarded by a single lock."""

    def __init__(self) -> None:
        self._rows: dict[RegistrationId, Registration] = {}
        self._lock = threading.Lock()

    def create_pending(
        self, event_id: EventId, participant_id: str, note: str, created_at: datetime
    ) -> Registration:
        with self._lock:
            if self._find_active(event_id, participant_id) is not None:
                raise DuplicateActiveRegistrationError(str(event_id), participant_id)
            registration = Registration(
                id=RegistrationId(uuid.uuid4()),
                event_id=event_id,
                participant_id=participant_id,
                status=RegistrationStatus.PENDING,
                created_at=created_at,
                note=note,
            )
            self._rows[registration.id] = registration
            return registration

    def get(self, registration_id: RegistrationId) -> Registration | None:
        with self._lock:
            return self._rows.get(registration_id)

    def find_active(self, event_id: EventId, participant_id: str) -> Registration | None:
        with self._lock:
            return self._find_active(event_id, participant_id)

    def _find_active(self, event_id: EventId, participant_id: str) -> Registration | None:
        for row in self._rows.values():
            if row.event_id == event_id and row.participant_id == participant_id and row.status.is_active:
                return row
        return None

    def compare_and_set_status(
        self,
        registration_id: RegistrationId,
        expected: RegistrationStatus,
        new: RegistrationStatus,
        decided_by: str | None,
        decided_at: datetime | None = None,
        rejection_reason: str | None = None,
    ) -> Registration:
        with self._lock:
            current = self._rows.get(registration_id)
            if current is None:
                raise RegistrationNotFoundError(str(registration_id))
            if current.status is not expected:
                raise ConflictStaleError(str(registration_id))
            updated = dataclasses.replace(
                current,
                status=new,
                decided_by=decided_by,
                decided_at=decided_at if decided_at is not None else current.decided_at,
                rejection_reason=rejection_reason if rejection_reason is not None else current.rejection_reason,
            )
            self._rows[registration_id] = updated
            return updated

    def count_by_status(self, event_id: EventId, status: RegistrationStatus) -> int:
        with self._lock:
            return sum(1 for row in self._rows.values() if row.event_id == event_id and row.status is status)

    def delete_if_pending(self, registration_id: RegistrationId) -> bool:
        with self._lock:
            row = self._rows.get(registration_id)
            if row is None or row.status is not RegistrationStatus.PENDING:
                return False
            del self._rows[registration_id]
            return True

    def list_for_event(
        self, event_id: EventId, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        return self._select(lambda row: row.event_id == event_id, status)

    def list_for_participant(
        self, participant_id: str, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        return self._select(lambda row: row.participant_id == participant_id, status)

    def stats_for_event(self, event_id: EventId) -> RegistrationStats:
        return self._stats(lambda row: row.event_id == event_id)

    def stats_for_events(self, event_ids: list[EventId]) -> RegistrationStats:
        wanted = set(event_ids)
        return self._stats(lambda row: row.event_id in wanted)

    def global_stats(self) -> RegistrationStats:
        return self._stats(lambda row: True)

    def _stats(self, predicate) -> RegistrationStats:
        with self._lock:
            statuses = [row.status.value for row in self._rows.values() if predicate(row)]
        return RegistrationStats(**{status.value: statuses.count(status.value) for status in RegistrationStatus})

    def _select(self, predicate, status: RegistrationStatus | None) -> list[Registration]:
        with self._lock:
            rows = [row for row in self._rows.values() if predicate(row)]
        if status is not None:
            rows = [row for row in rows if row.status is status]
        return sorted(rows, key=lambda row: row.created_at, reverse=True)


class InMemoryEventProvider(EventProvider):
    """Event catalog seeded by the caller."""

    def __init__(self, events: Iterable[EventSnapshot] = ()) -> None:
        self._events: dict[EventId, EventSnapshot] = {event.id: event for event in events}

    def add(self, event: EventSnapshot) -> None:
        self._events[event.id] = event

    def get_event(self, event_id: EventId) -> EventSnapshot | None:
        return self._events.get(event_id)

    def event_ids_for_organizer(self, organizer_id: str) -> list[EventId]:
        return [event.id for event in self._events.values() if event.organizer_id == organizer_id]

    def ids(self) -> list[EventId]:
        return list(self._events)


class InMemoryCapacityLedger(CapacityLedger):
    """Per-event counters, each guarded by its own reentrant lock.

    Capacity is read from the event provider; counters start at the
    snapshot's approved_count.
    """

    def __init__(self, events: InMemoryEventProvider) -> None:
        self._events = events
        self._counts: dict[EventId, int] = {}
        self._locks: dict[EventId, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, event_id: EventId) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(event_id)
            if lock is None:
                lock = self._locks[event_id] = threading.RLock()
            return lock

    def _count(self, event_id: EventId) -> int:
        if event_id not in self._counts:
            event = self._events.get_event(event_id)
            self._counts[event_id] = event.approved_count if event else 0
        return self._counts[event_id]

    def try_reserve_slot(self, event_id: EventId) -> bool:
        event = self._events.get_event(event_id)
        if event is None:
            return False
        with self._lock_for(event_id):
            count = self._count(event_id)
            if not event.capacity.admits(count):
                return False
            self._counts[event_id] = count + 1
            return True

    def release_slot(self, event_id: EventId) -> None:
        with self._lock_for(event_id):
            self._counts[event_id] = max(self._count(event_id) - 1, 0)

    def current_count(self, event_id: EventId) -> int | None:
        if self._events.get_event(event_id) is None:
            return None
        with self._lock_for(event_id):
            return self._count(event_id)

    def overwrite(self, event_id: EventId, approved_count: int) -> None:
        with self._lock_for(event_id):
            self._counts[event_id] = approved_count

    def event_ids(self) -> list[EventId]:
        return self._events.ids()

    @contextmanager
    def locked(self, event_id: EventId) -> Iterator[None]:
        with self._lock_for(event_id):
            yield


class AllowListAuthorizer(Authorizer):
    """Authorizes a fixed set of actors, optionally per event."""

    def __init__(self, actor_ids: Iterable[str] = (), per_event: dict[EventId, set[str]] | None = None) -> None:
        self._actor_ids = frozenset(actor_ids)
        self._per_event = per_event or {}

    def is_authorized_to_decide(self, actor_id: str, event_id: EventId) -> bool:
        return actor_id in self._actor_ids or actor_id in self._per_event.get(event_id, ())
