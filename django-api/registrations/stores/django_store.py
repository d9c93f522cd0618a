"""Django ORM implementations of the registration stores.

The capacity ledger counter is the Event.approved_count column. It is only
ever changed by single conditional UPDATE statements, never by saving a
loaded Event instance.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, F, QuerySet
from django.utils import timezone

from registrations import models
from registrations.domain import (
    Capacity,
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

logger = structlog.get_logger(__name__)


def _to_domain(row: models.Registration) -> Registration:
    return Registration(
        id=RegistrationId(row.id),
        event_id=EventId(row.event_id),
        participant_id=row.participant_id,
        status=RegistrationStatus(row.status),
        created_at=row.created_at,
        note=row.note,
        decided_by=row.decided_by,
        decided_at=row.decided_at,
        rejection_reason=row.rejection_reason,
    )


def _stats(queryset: QuerySet[models.Registration]) -> RegistrationStats:
    rows = queryset.values("status").annotate(total=Count("id")).order_by()
    return RegistrationStats(**{row["status"]: row["total"] for row in rows})


class DjangoRegistrationStore(RegistrationStore):
    """PostgreSQL-backed registration store using Django ORM."""

    def create_pending(
        self, event_id: EventId, participant_id: str, note: str, created_at: datetime
    ) -> Registration:
        try:
            with transaction.atomic():
                row = models.Registration.objects.create(
                    event_id=event_id.value,
                    participant_id=participant_id,
                    note=note,
                    status=models.Registration.Status.PENDING,
                    created_at=created_at,
                )
        except IntegrityError as e:
            # Only unique_active_registration maps to a duplicate; a missing event propagates.
            if self.find_active(event_id, participant_id) is None:
                raise
            raise DuplicateActiveRegistrationError(str(event_id), participant_id) from e
        return _to_domain(row)

    def get(self, registration_id: RegistrationId) -> Registration | None:
        row = models.Registration.objects.filter(pk=registration_id.value).first()
        return _to_domain(row) if row else None

    def find_active(self, event_id: EventId, participant_id: str) -> Registration | None:
        row = models.Registration.objects.filter(
            event_id=event_id.value,
            participant_id=participant_id,
            status__in=[RegistrationStatus.PENDING.value, RegistrationStatus.APPROVED.value],
        ).first()
        return _to_domain(row) if row else None

    def compare_and_set_status(
        self,
        registration_id: RegistrationId,
        expected: RegistrationStatus,
        new: RegistrationStatus,
        decided_by: str | None,
        decided_at: datetime | None = None,
        rejection_reason: str | None = None,
    ) -> Registration:
        changes = {
            "status": new.value,
            "decided_by": decided_by,
            "updated_at": timezone.now(),
        }
        if decided_at is not None:
            changes["decided_at"] = decided_at
        if rejection_reason is not None:
            changes["rejection_reason"] = rejection_reason

        updated = models.Registration.objects.filter(
            pk=registration_id.value, status=expected.value
        ).update(**changes)
        if updated == 0:
            if not models.Registration.objects.filter(pk=registration_id.value).exists():
                raise RegistrationNotFoundError(str(registration_id))
            logger.info(
                "registration_cas_conflict",
                registration_id=str(registration_id),
                expected=expected.value,
                new=new.value,
            )
            raise ConflictStaleError(str(registration_id))
        return _to_domain(models.Registration.objects.get(pk=registration_id.value))

    def count_by_status(self, event_id: EventId, status: RegistrationStatus) -> int:
        return models.Registration.objects.filter(event_id=event_id.value, status=status.value).count()

    def delete_if_pending(self, registration_id: RegistrationId) -> bool:
        deleted, _ = models.Registration.objects.filter(
            pk=registration_id.value, status=RegistrationStatus.PENDING.value
        ).delete()
        return deleted > 0

    def list_for_event(
        self, event_id: EventId, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        qs = models.Registration.objects.filter(event_id=event_id.value)
        if status is not None:
            qs = qs.filter(status=status.value)
        return [_to_domain(row) for row in qs.order_by("-created_at")]

    def list_for_participant(
        self, participant_id: str, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        qs = models.Registration.objects.filter(participant_id=participant_id)
        if status is not None:
            qs = qs.filter(status=status.value)
        return [_to_domain(row) for row in qs.order_by("-created_at")]

    def stats_for_event(self, event_id: EventId) -> RegistrationStats:
        return _stats(models.Registration.objects.filter(event_id=event_id.value))

    def stats_for_events(self, event_ids: list[EventId]) -> RegistrationStats:
        return _stats(models.Registration.objects.filter(event_id__in=[event_id.value for event_id in event_ids]))

    def global_stats(self) -> RegistrationStats:
        return _stats(models.Registration.objects.all())


class DjangoCapacityLedger(CapacityLedger):
    """Capacity counter stored on the event row."""

    def try_reserve_slot(self, event_id: EventId) -> bool:
        updated = models.Event.objects.filter(
            pk=event_id.value, approved_count__lt=F("capacity")
        ).update(approved_count=F("approved_count") + 1)
        return updated == 1

    def release_slot(self, event_id: EventId) -> None:
        updated = models.Event.objects.filter(pk=event_id.value, approved_count__gt=0).update(
            approved_count=F("approved_count") - 1
        )
        if updated == 0:
            logger.warning("capacity_release_at_zero", event_id=str(event_id))

    def current_count(self, event_id: EventId) -> int | None:
        return (
            models.Event.objects.filter(pk=event_id.value)
            .values_list("approved_count", flat=True)
            .first()
        )

    def overwrite(self, event_id: EventId, approved_count: int) -> None:
        models.Event.objects.filter(pk=event_id.value).update(approved_count=approved_count)

    def event_ids(self) -> list[EventId]:
        return [EventId(pk) for pk in models.Event.objects.order_by("created_at").values_list("pk", flat=True)]

    @contextmanager
    def locked(self, event_id: EventId) -> Iterator[None]:
        """Open a transaction holding the event row lock until it commits."""
        with transaction.atomic():
            list(models.Event.objects.select_for_update().filter(pk=event_id.value).values_list("pk", flat=True))
            yield


class DjangoEventProvider(EventProvider):
    """Reads event metadata from the Event table."""

    def get_event(self, event_id: EventId) -> EventSnapshot | None:
        row = models.Event.objects.filter(pk=event_id.value).first()
        if row is None:
            return None
        return EventSnapshot(
            id=EventId(row.id),
            capacity=Capacity(row.capacity),
            approved_count=row.approved_count,
            registration_deadline=row.registration_deadline,
            is_active=row.is_active,
            organizer_id=row.organizer_id,
        )

    def event_ids_for_organizer(self, organizer_id: str) -> list[EventId]:
        rows = models.Event.objects.filter(organizer_id=organizer_id).values_list("pk", flat=True)
        return [EventId(pk) for pk in rows]


class DjangoAuthorizer(Authorizer):
    """Event organizers decide on their own events; configured admins on any event."""

    def __init__(self, admin_ids: frozenset[str] | None = None) -> None:
        if admin_ids is None:
            admin_ids = frozenset(settings.REGISTRATION_ADMIN_IDS)
        self._admin_ids = admin_ids

    def is_authorized_to_decide(self, actor_id: str, event_id: EventId) -> bool:
        if actor_id in self._admin_ids:
            return True
        return models.Event.objects.filter(pk=event_id.value, organizer_id=actor_id).exists()
