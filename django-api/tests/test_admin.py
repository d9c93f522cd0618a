"""Tests for the Django admin guards around registrations and events.

Run with: pytest tests/test_admin.py -v
"""

import pytest
from django.contrib.admin.sites import AdminSite
from django.test import RequestFactory
from django.utils import timezone

from registrations import models
from registrations.admin import EventAdmin, RegistrationAdmin

pytestmark = pytest.mark.django_db


@pytest.fixture
def admin_request(admin_user):
    request = RequestFactory().get("/admin/")
    request.user = admin_user
    return request


def make_row(event: models.Event, participant_id: str, status: str) -> models.Registration:
    return models.Registration.objects.create(
        event=event,
        participant_id=participant_id,
        status=status,
        created_at=timezone.now(),
    )


class TestRegistrationAdmin:
    def test_only_pending_rows_can_be_deleted(self, event, admin_request):
        model_admin = RegistrationAdmin(models.Registration, AdminSite())
        pending = make_row(event, "alice", models.Registration.Status.PENDING)
        approved = make_row(event, "bob", models.Registration.Status.APPROVED)

        assert model_admin.has_delete_permission(admin_request, pending)
        assert not model_admin.has_delete_permission(admin_request, approved)

    def test_bulk_delete_action_is_removed(self, admin_request):
        model_admin = RegistrationAdmin(models.Registration, AdminSite())

        assert "delete_selected" not in model_admin.get_actions(admin_request)

    def test_approved_row_delete_page_is_forbidden(self, admin_client, event):
        models.Event.objects.filter(pk=event.pk).update(approved_count=1)
        approved = make_row(event, "bob", models.Registration.Status.APPROVED)

        response = admin_client.post(f"/admin/registrations/registration/{approved.pk}/delete/", {"post": "yes"})

        assert response.status_code == 403
        assert models.Registration.objects.filter(pk=approved.pk).exists()
        event.refresh_from_db()
        assert event.approved_count == 1


class TestEventAdmin:
    def test_capacity_is_read_only_on_existing_events(self, event, admin_request):
        model_admin = EventAdmin(models.Event, AdminSite())

        assert "capacity" in model_admin.get_readonly_fields(admin_request, event)
        assert "capacity" not in model_admin.get_readonly_fields(admin_request, None)
        assert "approved_count" in model_admin.get_readonly_fields(admin_request, None)
