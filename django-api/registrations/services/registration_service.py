"""Registration service - the registration state machine.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Every committed transition is followed by a reconciliation of the event's
approved count and a published RegistrationChange. Capacity is consumed at
approval time; a pending registration does not hold a slot.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from registrations.domain import (
    ChangeKind,
    EventId,
    EventSnapshot,
    OrganizerStats,
    ReconciliationResult,
    Registration,
    RegistrationChange,
    RegistrationId,
    RegistrationStats,
    RegistrationStatus,
)
from registrations.domain.errors import (
    ConflictStaleError,
    DuplicateActiveRegistrationError,
    EventFullError,
    EventInactiveError,
    EventNotFoundError,
    InvalidEventIdError,
    InvalidRegistrationIdError,
    InvalidTransitionError,
    NotAuthorizedError,
    RegistrationClosedError,
    RegistrationNotFoundError,
)
from registrations.domain.transitions import ensure_transition
from registrations.services.notifier import ChangeHandler, ChangeNotifier
from registrations.services.reconciler import ConsistencyReconciler
from registrations.stores.interfaces import (
    Authorizer,
    CapacityLedger,
    EventProvider,
    RegistrationStore,
)

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RegistrationService:
    """Service for the registration workflow."""

    def __init__(
        self,
        store: RegistrationStore,
        ledger: CapacityLedger,
        events: EventProvider,
        authorizer: Authorizer,
        notifier: ChangeNotifier,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._events = events
        self._authorizer = authorizer
        self._notifier = notifier
        self._clock = clock
        self._reconciler = ConsistencyReconciler(store, ledger)

    # Transitions

    def register(self, event_id: str, participant_id: str, note: str = "") -> Registration:
        """Create a pending registration.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            EventInactiveError: If the event has been deactivated.
            RegistrationClosedError: If the registration deadline has passed.
            DuplicateActiveRegistrationError: If the participant already has a
                pending or approved registration for the event.
            EventFullError: If every slot is already taken by approvals.
        """
        event = self._require_event(self._parse_event_id(event_id))
        now = self._clock()

        if not event.is_active:
            raise EventInactiveError(event_id)
        if not event.is_registration_open(now):
            raise RegistrationClosedError(event_id)
        if self._store.find_active(event.id, participant_id) is not None:
            raise DuplicateActiveRegistrationError(event_id, participant_id)
        # Optimistic: approval is where the slot is actually taken.
        if not event.capacity.admits(self._ledger.current_count(event.id) or 0):
            raise EventFullError(event_id)

        registration = self._store.create_pending(event.id, participant_id, note, created_at=now)
        logger.info(
            "registration_created",
            registration_id=str(registration.id),
            event_id=event_id,
            participant_id=participant_id,
        )
        self._after_commit(registration, ChangeKind.REGISTERED)
        return registration

    def approve(self, registration_id: str, approver_id: str) -> Registration:
        """Approve a pending registration, consuming one capacity slot.

        Raises:
            InvalidRegistrationIdError: If the registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
            NotAuthorizedError: If the approver may not decide for the event.
            InvalidTransitionError: If the registration is not pending.
            EventFullError: If no slot is left. The registration stays pending.
            ConflictStaleError: If another actor resolved it concurrently.
        """
        current = self._require_registration(self._parse_registration_id(registration_id))
        self._require_decider(approver_id, current.event_id)
        ensure_transition(current.status, RegistrationStatus.APPROVED)

        with self._ledger.locked(current.event_id):
            if not self._ledger.try_reserve_slot(current.event_id):
                logger.info(
                    "registration_approve_event_full",
                    registration_id=registration_id,
                    event_id=str(current.event_id),
                )
                raise EventFullError(str(current.event_id))
            try:
                approved = self._store.compare_and_set_status(
                    current.id,
                    RegistrationStatus.PENDING,
                    RegistrationStatus.APPROVED,
                    decided_by=approver_id,
                    decided_at=self._clock(),
                )
            except (ConflictStaleError, RegistrationNotFoundError):
                self._ledger.release_slot(current.event_id)
                raise

        logger.info(
            "registration_approved",
            registration_id=registration_id,
            event_id=str(approved.event_id),
            approver_id=approver_id,
        )
        self._after_commit(approved, ChangeKind.APPROVED)
        return approved

    def reject(self, registration_id: str, rejecter_id: str, reason: str = "") -> Registration:
        """Reject a pending registration.

        Raises:
            InvalidRegistrationIdError: If the registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
            NotAuthorizedError: If the rejecter may not decide for the event.
            InvalidTransitionError: If the registration is not pending.
            ConflictStaleError: If another actor resolved it concurrently.
        """
        current = self._require_registration(self._parse_registration_id(registration_id))
        self._require_decider(rejecter_id, current.event_id)
        ensure_transition(current.status, RegistrationStatus.REJECTED)

        rejected = self._store.compare_and_set_status(
            current.id,
            RegistrationStatus.PENDING,
            RegistrationStatus.REJECTED,
            decided_by=rejecter_id,
            decided_at=self._clock(),
            rejection_reason=reason,
        )
        logger.info(
            "registration_rejected",
            registration_id=registration_id,
            event_id=str(rejected.event_id),
            rejecter_id=rejecter_id,
        )
        self._after_commit(rejected, ChangeKind.REJECTED)
        return rejected

    def cancel(self, registration_id: str, actor_id: str) -> Registration:
        """Cancel a pending or approved registration.

        Cancelling an approved registration frees its slot. The release is
        issued after the status write, inside the same per-event unit of work.

        Raises:
            InvalidRegistrationIdError: If the registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
            NotAuthorizedError: If the actor is neither the participant nor a decider.
            InvalidTransitionError: If the registration is rejected or cancelled.
            ConflictStaleError: If another actor changed it concurrently.
        """
        current = self._require_registration(self._parse_registration_id(registration_id))
        if actor_id != current.participant_id:
            self._require_decider(actor_id, current.event_id)
        ensure_transition(current.status, RegistrationStatus.CANCELLED)

        if current.status is RegistrationStatus.APPROVED:
            with self._ledger.locked(current.event_id):
                cancelled = self._cancel_from(current, actor_id)
                self._ledger.release_slot(current.event_id)
        else:
            cancelled = self._cancel_from(current, actor_id)

        logger.info(
            "registration_cancelled",
            registration_id=registration_id,
            event_id=str(cancelled.event_id),
            actor_id=actor_id,
            previous_status=current.status.value,
        )
        self._after_commit(cancelled, ChangeKind.CANCELLED)
        return cancelled

    def withdraw(self, registration_id: str, participant_id: str) -> None:
        """Delete the participant's own registration while it is still pending.

        Raises:
            InvalidRegistrationIdError: If the registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
            NotAuthorizedError: If the caller is not the participant.
            InvalidTransitionError: If the registration is no longer pending.
        """
        current = self._require_registration(self._parse_registration_id(registration_id))
        if participant_id != current.participant_id:
            raise NotAuthorizedError(participant_id)
        if current.status is not RegistrationStatus.PENDING or not self._store.delete_if_pending(current.id):
            latest = self._store.get(current.id)
            status = latest.status.value if latest else current.status.value
            raise InvalidTransitionError(current=status, target="withdrawn")

        logger.info(
            "registration_withdrawn",
            registration_id=registration_id,
            event_id=str(current.event_id),
        )
        self._after_commit(current, ChangeKind.WITHDRAWN, deleted=True)

    # Queries

    def get_registration(self, registration_id: str, actor_id: str | None = None) -> Registration:
        """Return a registration by ID.

        When actor_id is given, only the participant or a decider for the
        event may read it.

        Raises:
            InvalidRegistrationIdError: If the registration_id is not a valid UUID.
            RegistrationNotFoundError: If the registration does not exist.
            NotAuthorizedError: If actor_id may not read the registration.
        """
        registration = self._require_registration(self._parse_registration_id(registration_id))
        if actor_id is not None and actor_id != registration.participant_id:
            self._require_decider(actor_id, registration.event_id)
        return registration

    def get_approved_count(self, event_id: str) -> int:
        """Return the event's approved count for display."""
        parsed = self._parse_event_id(event_id)
        count = self._ledger.current_count(parsed)
        if count is None:
            raise EventNotFoundError(event_id)
        return count

    def list_for_event(
        self, event_id: str, actor_id: str, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        """Return an event's registrations for its organizer."""
        event = self._require_event(self._parse_event_id(event_id))
        self._require_decider(actor_id, event.id)
        return self._store.list_for_event(event.id, status)

    def list_for_participant(
        self, participant_id: str, status: RegistrationStatus | None = None
    ) -> list[Registration]:
        return self._store.list_for_participant(participant_id, status)

    def registration_stats(self, event_id: str, actor_id: str) -> RegistrationStats:
        event = self._require_event(self._parse_event_id(event_id))
        self._require_decider(actor_id, event.id)
        return self._store.stats_for_event(event.id)

    def organizer_stats(self, organizer_id: str) -> OrganizerStats:
        """Return registration totals across every event the organizer runs."""
        event_ids = self._events.event_ids_for_organizer(organizer_id)
        return OrganizerStats(total_events=len(event_ids), registrations=self._store.stats_for_events(event_ids))

    def global_stats(self) -> RegistrationStats:
        return self._store.global_stats()

    # Repair and subscriptions

    def reconcile_event(self, event_id: str) -> int:
        """Recompute and persist the event's approved count."""
        event = self._require_event(self._parse_event_id(event_id))
        result = self._reconciler.repair(event.id)
        if result.drifted:
            self._publish(event.id, ChangeKind.RECONCILED, result.approved_count)
        return result.approved_count

    def reconcile_all(self) -> list[ReconciliationResult]:
        results = self._reconciler.reconcile_all()
        for result in results:
            if result.drifted:
                self._publish(result.event_id, ChangeKind.RECONCILED, result.approved_count)
        return results

    def subscribe(self, event_id: str, handler: ChangeHandler) -> None:
        self._notifier.subscribe(self._parse_event_id(event_id), handler)

    def unsubscribe(self, event_id: str, handler: ChangeHandler) -> None:
        self._notifier.unsubscribe(self._parse_event_id(event_id), handler)

    # Helpers

    def _cancel_from(self, current: Registration, actor_id: str) -> Registration:
        return self._store.compare_and_set_status(
            current.id,
            current.status,
            RegistrationStatus.CANCELLED,
            decided_by=actor_id,
            decided_at=self._clock(),
        )

    def _after_commit(self, registration: Registration, kind: ChangeKind, deleted: bool = False) -> None:
        count = self._reconciler.reconcile_after_transition(registration.event_id)
        if count is None:
            count = self._ledger.current_count(registration.event_id) or 0
        self._publish(
            registration.event_id,
            kind,
            count,
            registration_id=registration.id,
            status=None if deleted else registration.status,
        )

    def _publish(
        self,
        event_id: EventId,
        kind: ChangeKind,
        approved_count: int,
        registration_id: RegistrationId | None = None,
        status: RegistrationStatus | None = None,
    ) -> None:
        fact = RegistrationChange(
            event_id=event_id,
            kind=kind,
            approved_count=approved_count,
            occurred_at=self._clock(),
            registration_id=registration_id,
            status=status,
        )
        self._notifier.publish(event_id, fact)

    def _require_event(self, event_id: EventId) -> EventSnapshot:
        event = self._events.get_event(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event

    def _require_registration(self, registration_id: RegistrationId) -> Registration:
        registration = self._store.get(registration_id)
        if registration is None:
            raise RegistrationNotFoundError(str(registration_id))
        return registration

    def _require_decider(self, actor_id: str, event_id: EventId) -> None:
        if not self._authorizer.is_authorized_to_decide(actor_id, event_id):
            raise NotAuthorizedError(actor_id)

    @staticmethod
    def _parse_event_id(event_id: str) -> EventId:
        try:
            return EventId.from_string(event_id)
        except (ValueError, TypeError, AttributeError) as e:
            raise InvalidEventIdError() from e

    @staticmethod
    def _parse_registration_id(registration_id: str) -> RegistrationId:
        try:
            return RegistrationId.from_string(registration_id)
        except (ValueError, TypeError, AttributeError) as e:
            raise InvalidRegistrationIdError() from e
