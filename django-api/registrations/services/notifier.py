"""Change notifier - fans committed registration changes out to subscribers.

Delivery is best-effort to the handlers subscribed at publish time. There is
no queue and no replay; a failing handler is logged and skipped.
"""

import threading
from collections.abc import Callable

import structlog

from registrations.domain import EventId, RegistrationChange

logger = structlog.get_logger(__name__)

ChangeHandler = Callable[[RegistrationChange], None]


class ChangeNotifier:
    """Per-event topics keyed by EventId."""

    def __init__(self) -> None:
        self._topics: dict[EventId, list[ChangeHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_id: EventId, handler: ChangeHandler) -> None:
        with self._lock:
            handlers = self._topics.setdefault(event_id, [])
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, event_id: EventId, handler: ChangeHandler) -> None:
        with self._lock:
            handlers = self._topics.get(event_id)
            if not handlers or handler not in handlers:
                return
            handlers.remove(handler)
            if not handlers:
                del self._topics[event_id]

    def subscriber_count(self, event_id: EventId) -> int:
        with self._lock:
            return len(self._topics.get(event_id, ()))

    def publish(self, event_id: EventId, fact: RegistrationChange) -> None:
        with self._lock:
            handlers = list(self._topics.get(event_id, ()))
        for handler in handlers:
            try:
                handler(fact)
            except Exception:
                logger.exception(
                    "change_handler_failed",
                    event_id=str(event_id),
                    kind=fact.kind.value,
                )


change_notifier = ChangeNotifier()
