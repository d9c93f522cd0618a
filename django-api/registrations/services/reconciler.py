"""Consistency reconciler - the authority of record for approved counts.

The capacity ledger's counter is an admission-control cache. reconcile()
recomputes the count from the registration store and overwrites the
counter, which repairs drift left behind by a crash between a ledger update
and a record commit. Running it twice in a row yields the same count.
"""

import structlog

from registrations.domain import EventId, ReconciliationResult, RegistrationStatus
from registrations.stores.interfaces import CapacityLedger, RegistrationStore

logger = structlog.get_logger(__name__)


class ConsistencyReconciler:
    """Recomputes approved counts from registration records."""

    def __init__(self, store: RegistrationStore, ledger: CapacityLedger) -> None:
        self._store = store
        self._ledger = ledger

    def reconcile(self, event_id: EventId) -> int:
        """Return the authoritative approved count after writing it to the ledger."""
        return self.repair(event_id).approved_count

    def repair(self, event_id: EventId) -> ReconciliationResult:
        """Overwrite the event's approved count with the count of approved registrations."""
        with self._ledger.locked(event_id):
            previous = self._ledger.current_count(event_id) or 0
            approved = self._store.count_by_status(event_id, RegistrationStatus.APPROVED)
            self._ledger.overwrite(event_id, approved)

        result = ReconciliationResult(event_id=event_id, previous_count=previous, approved_count=approved)
        if result.drifted:
            logger.warning(
                "reconcile_drift_repaired",
                event_id=str(event_id),
                previous_count=previous,
                approved_count=approved,
            )
        return result

    def reconcile_all(self) -> list[ReconciliationResult]:
        """Reconcile every event the ledger tracks."""
        results = [self.repair(event_id) for event_id in self._ledger.event_ids()]
        logger.info(
            "reconcile_all_finished",
            events=len(results),
            drifted=sum(1 for result in results if result.drifted),
        )
        return results

    def reconcile_after_transition(self, event_id: EventId) -> int | None:
        """Reconcile following a committed transition.

        Never raises: the transition is already committed, so a failure here
        is logged and left for the next repair pass. Returns None on failure.
        """
        try:
            return self.reconcile(event_id)
        except Exception:
            logger.exception("reconcile_after_transition_failed", event_id=str(event_id))
            return None
