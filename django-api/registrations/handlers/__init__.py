from registrations.handlers.views import (
    ApproveRegistrationView,
    ApprovedCountView,
    CancelRegistrationView,
    EventRegistrationStatsView,
    EventRegistrationsView,
    GlobalStatsView,
    MyRegistrationsView,
    OrganizerStatsView,
    ReconcileAllView,
    ReconcileEventView,
    RegistrationDetailView,
    RegistrationListView,
    RejectRegistrationView,
)

__all__ = [
    "RegistrationListView",
    "MyRegistrationsView",
    "RegistrationDetailView",
    "ApproveRegistrationView",
    "RejectRegistrationView",
    "CancelRegistrationView",
    "ApprovedCountView",
    "EventRegistrationsView",
    "EventRegistrationStatsView",
    "OrganizerStatsView",
    "GlobalStatsView",
    "ReconcileEventView",
    "ReconcileAllView",
]
