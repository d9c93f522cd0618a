"""Tests for ChangeNotifier.

Run with: pytest tests/test_notifier.py -v
"""

import uuid
from datetime import UTC, datetime

from registrations.domain import ChangeKind, EventId, RegistrationChange
from registrations.services.notifier import ChangeNotifier


def fact(event_id: EventId, count: int = 1) -> RegistrationChange:
    return RegistrationChange(
        event_id=event_id,
        kind=ChangeKind.APPROVED,
        approved_count=count,
        occurred_at=datetime.now(UTC),
    )


class TestChangeNotifier:
    def test_publish_routes_by_event(self):
        notifier = ChangeNotifier()
        first, second = EventId(uuid.uuid4()), EventId(uuid.uuid4())
        got_first, got_second = [], []
        notifier.subscribe(first, got_first.append)
        notifier.subscribe(second, got_second.append)

        notifier.publish(first, fact(first))

        assert len(got_first) == 1
        assert got_second == []

    def test_subscribe_is_idempotent(self):
        notifier = ChangeNotifier()
        event_id = EventId(uuid.uuid4())
        received = []
        notifier.subscribe(event_id, received.append)
        notifier.subscribe(event_id, received.append)

        notifier.publish(event_id, fact(event_id))

        assert len(received) == 1
        assert notifier.subscriber_count(event_id) == 1

    def test_unsubscribe_removes_empty_topic(self):
        notifier = ChangeNotifier()
        event_id = EventId(uuid.uuid4())
        received = []
        notifier.subscribe(event_id, received.append)
        notifier.unsubscribe(event_id, received.append)
        notifier.unsubscribe(event_id, received.append)

        notifier.publish(event_id, fact(event_id))

        assert received == []
        assert notifier.subscriber_count(event_id) == 0

    def test_failing_handler_does_not_block_others(self):
        notifier = ChangeNotifier()
        event_id = EventId(uuid.uuid4())
        received = []

        def broken(change):
            raise RuntimeError("socket closed")

        notifier.subscribe(event_id, broken)
        notifier.subscribe(event_id, received.append)

        notifier.publish(event_id, fact(event_id, count=2))

        assert [change.approved_count for change in received] == [2]

    def test_publish_without_subscribers_is_noop(self):
        notifier = ChangeNotifier()
        event_id = EventId(uuid.uuid4())
        notifier.publish(event_id, fact(event_id))
