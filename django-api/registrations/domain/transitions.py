"""Legal registration status transitions.

pending is the only initial state. rejected and cancelled are terminal;
approved can still be cancelled.
"""

from registrations.domain.errors import InvalidTransitionError
from registrations.domain.models import RegistrationStatus

ALLOWED_TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    RegistrationStatus.PENDING: frozenset(
        {
            RegistrationStatus.APPROVED,
            RegistrationStatus.REJECTED,
            RegistrationStatus.CANCELLED,
        }
    ),
    RegistrationStatus.APPROVED: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.REJECTED: frozenset(),
    RegistrationStatus.CANCELLED: frozenset(),
}


def can_transition(current: RegistrationStatus, target: RegistrationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: RegistrationStatus, target: RegistrationStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is legal."""
    if not can_transition(current, target):
        raise InvalidTransitionError(current=current.value, target=target.value)
