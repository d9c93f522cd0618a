"""Tests for the reconcile_registrations management command.

Run with: pytest tests/test_commands.py -v
"""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from registrations import models

pytestmark = pytest.mark.django_db


def run(*args: str) -> str:
    out = StringIO()
    call_command("reconcile_registrations", *args, stdout=out)
    return out.getvalue()


def test_repairs_drift_on_all_events(event):
    models.Event.objects.filter(pk=event.pk).update(approved_count=2)

    output = run()

    assert f"{event.id}: approved_count 2 -> 0" in output
    assert "Reconciled 1 events, repaired 1." in output
    event.refresh_from_db()
    assert event.approved_count == 0


def test_reports_nothing_to_repair(event):
    output = run()

    assert "repaired 0" in output


def test_single_event(event):
    models.Event.objects.filter(pk=event.pk).update(approved_count=1)

    output = run("--event", str(event.id))

    assert output.strip() == f"{event.id}: approved_count=0"
    event.refresh_from_db()
    assert event.approved_count == 0


def test_invalid_event_id_fails():
    with pytest.raises(CommandError, match="INVALID_EVENT_ID"):
        run("--event", "not-a-uuid")
