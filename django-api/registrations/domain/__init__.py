from registrations.domain.models import (
    ChangeKind,
    EventSnapshot,
    OrganizerStats,
    ReconciliationResult,
    Registration,
    RegistrationChange,
    RegistrationStats,
    RegistrationStatus,
)
from registrations.domain.value_objects import Capacity, EventId, RegistrationId

__all__ = [
    "Registration",
    "RegistrationStatus",
    "RegistrationStats",
    "RegistrationChange",
    "ReconciliationResult",
    "ChangeKind",
    "EventSnapshot",
    "OrganizerStats",
    "EventId",
    "RegistrationId",
    "Capacity",
]
