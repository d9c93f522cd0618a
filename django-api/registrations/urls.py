from django.urls import path

from registrations.handlers import (
    ApprovedCountView,
    ApproveRegistrationView,
    CancelRegistrationView,
    EventRegistrationsView,
    EventRegistrationStatsView,
    GlobalStatsView,
    MyRegistrationsView,
    OrganizerStatsView,
    ReconcileAllView,
    ReconcileEventView,
    RegistrationDetailView,
    RegistrationListView,
    RejectRegistrationView,
)

urlpatterns = [
    path("registrations", RegistrationListView.as_view(), name="registration-list"),
    path("registrations/mine", MyRegistrationsView.as_view(), name="registration-mine"),
    path("registrations/stats", GlobalStatsView.as_view(), name="registration-stats"),
    path(
        "registrations/organizer/stats",
        OrganizerStatsView.as_view(),
        name="registration-organizer-stats",
    ),
    path(
        "registrations/<str:registration_id>",
        RegistrationDetailView.as_view(),
        name="registration-detail",
    ),
    path(
        "registrations/<str:registration_id>/approve",
        ApproveRegistrationView.as_view(),
        name="registration-approve",
    ),
    path(
        "registrations/<str:registration_id>/reject",
        RejectRegistrationView.as_view(),
        name="registration-reject",
    ),
    path(
        "registrations/<str:registration_id>/cancel",
        CancelRegistrationView.as_view(),
        name="registration-cancel",
    ),
    path("events/reconcile", ReconcileAllView.as_view(), name="event-reconcile-all"),
    path(
        "events/<str:event_id>/approved-count",
        ApprovedCountView.as_view(),
        name="event-approved-count",
    ),
    path(
        "events/<str:event_id>/registrations",
        EventRegistrationsView.as_view(),
        name="event-registrations",
    ),
    path(
        "events/<str:event_id>/registrations/stats",
        EventRegistrationStatsView.as_view(),
        name="event-registration-stats",
    ),
    path(
        "events/<str:event_id>/reconcile",
        ReconcileEventView.as_view(),
        name="event-reconcile",
    ),
]
