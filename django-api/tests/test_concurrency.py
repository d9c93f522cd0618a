"""Race tests for the capacity ledger and conditional status writes.

Run with: pytest tests/test_concurrency.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from registrations.domain import RegistrationStatus
from registrations.domain.errors import (
    ConflictStaleError,
    DuplicateActiveRegistrationError,
    EventFullError,
    InvalidTransitionError,
)

from conftest import ORGANIZER


def race(calls, workers: int):
    """Run callables simultaneously; return (results, errors) in call order."""
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait()
        try:
            return call(), None
        except Exception as e:
            return None, e

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(run, calls))
    return [o[0] for o in outcomes], [o[1] for o in outcomes]


@pytest.mark.parametrize("capacity,contenders", [(1, 8), (3, 10), (5, 5)])
def test_concurrent_approvals_never_exceed_capacity(make_workflow, capacity, contenders):
    wf = make_workflow(capacity=capacity)
    registrations = [wf.service.register(wf.eid, f"participant-{i}") for i in range(contenders)]

    calls = [lambda rid=str(r.id): wf.service.approve(rid, ORGANIZER) for r in registrations]
    results, errors = race(calls, workers=contenders)

    succeeded = [r for r in results if r is not None]
    assert len(succeeded) == min(capacity, contenders)
    assert all(isinstance(e, EventFullError) for e in errors if e is not None)
    assert wf.service.get_approved_count(wf.eid) == len(succeeded)
    assert wf.store.count_by_status(wf.event_id, RegistrationStatus.APPROVED) == len(succeeded)
    assert wf.store.count_by_status(wf.event_id, RegistrationStatus.PENDING) == contenders - len(succeeded)


def test_approve_and_reject_race_on_one_registration(workflow):
    registration = workflow.service.register(workflow.eid, "alice")
    rid = str(registration.id)

    results, errors = race(
        [
            lambda: workflow.service.approve(rid, ORGANIZER),
            lambda: workflow.service.reject(rid, ORGANIZER, "late"),
        ],
        workers=2,
    )

    assert sum(1 for r in results if r is not None) == 1
    loser = next(e for e in errors if e is not None)
    assert isinstance(loser, (ConflictStaleError, InvalidTransitionError))

    final = workflow.service.get_registration(rid)
    expected_count = 1 if final.status is RegistrationStatus.APPROVED else 0
    assert workflow.service.get_approved_count(workflow.eid) == expected_count


@pytest.mark.parametrize("attempt", range(20))
def test_cancellations_and_approvals_interleave_consistently(make_workflow, attempt):
    wf = make_workflow(capacity=3)
    approved = [wf.service.register(wf.eid, f"early-{i}") for i in range(3)]
    waiting = [wf.service.register(wf.eid, f"late-{i}") for i in range(3)]
    for r in approved:
        wf.service.approve(str(r.id), ORGANIZER)

    calls = [lambda rid=str(r.id): wf.service.cancel(rid, ORGANIZER) for r in approved]
    calls += [lambda rid=str(r.id): wf.service.approve(rid, ORGANIZER) for r in waiting]
    results, errors = race(calls, workers=len(calls))

    assert errors[:3] == [None] * 3
    assert all(isinstance(e, EventFullError) for e in errors[3:] if e is not None)
    approved_now = wf.store.count_by_status(wf.event_id, RegistrationStatus.APPROVED)
    assert approved_now == sum(1 for r in results[3:] if r is not None)
    assert approved_now <= 3
    assert wf.service.get_approved_count(wf.eid) == approved_now


def test_concurrent_reconcile_is_stable(workflow):
    a = workflow.service.register(workflow.eid, "alice")
    workflow.service.approve(str(a.id), ORGANIZER)

    results, errors = race([lambda: workflow.service.reconcile_event(workflow.eid)] * 6, workers=6)

    assert errors == [None] * 6
    assert results == [1] * 6


def test_duplicate_registration_race_admits_one(workflow):
    results, errors = race([lambda: workflow.service.register(workflow.eid, "alice")] * 5, workers=5)

    assert sum(1 for r in results if r is not None) == 1
    assert all(isinstance(e, DuplicateActiveRegistrationError) for e in errors if e is not None)
