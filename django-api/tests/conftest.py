"""Pytest configuration and shared fixtures."""

import typing as t
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from registrations import models
from registrations.domain import Capacity, EventId, EventSnapshot, RegistrationChange
from registrations.services.notifier import ChangeNotifier
from registrations.services.registration_service import RegistrationService
from registrations.stores.memory_store import (
    AllowListAuthorizer,
    InMemoryCapacityLedger,
    InMemoryEventProvider,
    InMemoryRegistrationStore,
)

ORGANIZER = "organizer-1"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@dataclass
class Workflow:
    """An in-memory registration workflow around a single event."""

    service: RegistrationService
    store: InMemoryRegistrationStore
    ledger: InMemoryCapacityLedger
    events: InMemoryEventProvider
    notifier: ChangeNotifier
    event_id: EventId
    published: list[RegistrationChange]

    @property
    def eid(self) -> str:
        return str(self.event_id)

    def add_event(self, capacity: int = 2, **overrides: t.Any) -> EventId:
        snapshot = make_snapshot(capacity=capacity, **overrides)
        self.events.add(snapshot)
        return snapshot.id


def make_snapshot(capacity: int = 2, **overrides: t.Any) -> EventSnapshot:
    values: dict[str, t.Any] = {
        "id": EventId(uuid.uuid4()),
        "capacity": Capacity(capacity),
        "approved_count": 0,
        "registration_deadline": datetime.now(UTC) + timedelta(days=7),
        "is_active": True,
        "organizer_id": ORGANIZER,
    }
    values.update(overrides)
    return EventSnapshot(**values)


@pytest.fixture
def make_workflow() -> t.Callable[..., Workflow]:
    def _make(capacity: int = 2, deciders: t.Iterable[str] = (ORGANIZER,), **overrides: t.Any) -> Workflow:
        snapshot = make_snapshot(capacity=capacity, **overrides)
        events = InMemoryEventProvider([snapshot])
        store = InMemoryRegistrationStore()
        ledger = InMemoryCapacityLedger(events)
        notifier = ChangeNotifier()
        published: list[RegistrationChange] = []
        notifier.subscribe(snapshot.id, published.append)
        service = RegistrationService(
            store=store,
            ledger=ledger,
            events=events,
            authorizer=AllowListAuthorizer(deciders),
            notifier=notifier,
        )
        return Workflow(service, store, ledger, events, notifier, snapshot.id, published)

    return _make


@pytest.fixture
def workflow(make_workflow: t.Callable[..., Workflow]) -> Workflow:
    return make_workflow(capacity=2)


@pytest.fixture
def organizer(django_user_model: t.Any) -> t.Any:
    return django_user_model.objects.create_user(username="organizer", password="pass")


@pytest.fixture
def make_participant(django_user_model: t.Any) -> t.Callable[[str], t.Any]:
    def _make(username: str) -> t.Any:
        return django_user_model.objects.create_user(username=username, password="pass")

    return _make


@pytest.fixture
def event(organizer: t.Any) -> models.Event:
    return models.Event.objects.create(
        title="Campus hackathon",
        capacity=2,
        registration_deadline=timezone.now() + timedelta(days=7),
        organizer_id=str(organizer.pk),
    )
