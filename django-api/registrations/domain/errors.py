"""Domain error codes for the registrations module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    INVALID_REGISTRATION_ID = "INVALID_REGISTRATION_ID"
    EVENT_INACTIVE = "EVENT_INACTIVE"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    DUPLICATE_ACTIVE_REGISTRATION = "DUPLICATE_ACTIVE_REGISTRATION"
    EVENT_FULL = "EVENT_FULL"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONFLICT_STALE = "CONFLICT_STALE"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class RegistrationNotFoundError(DomainError):
    """Raised when a registration is not found."""

    def __init__(self, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message="Registration not found",
        )
        self.registration_id = registration_id


class InvalidEventIdError(DomainError):
    """Raised when an event ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_EVENT_ID,
            message="Invalid event ID format",
        )


class InvalidRegistrationIdError(DomainError):
    """Raised when a registration ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_REGISTRATION_ID,
            message="Invalid registration ID format",
        )


class EventInactiveError(DomainError):
    """Raised when registering for a deactivated event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_INACTIVE,
            message="Event is not active",
        )
        self.event_id = event_id


class RegistrationClosedError(DomainError):
    """Raised when the registration deadline has passed."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_CLOSED,
            message="Registration deadline has passed",
        )
        self.event_id = event_id


class DuplicateActiveRegistrationError(DomainError):
    """Raised when the participant already holds a pending or approved registration."""

    def __init__(self, event_id: str, participant_id: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_ACTIVE_REGISTRATION,
            message="Already registered for this event",
        )
        self.event_id = event_id
        self.participant_id = participant_id


class EventFullError(DomainError):
    """Raised when no capacity slot is left for the event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_FULL,
            message="Event is full",
        )
        self.event_id = event_id


class InvalidTransitionError(DomainError):
    """Raised when a status change is not legal from the current status."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot move registration from {current} to {target}",
        )
        self.current = current
        self.target = target


class ConflictStaleError(DomainError):
    """Raised when another writer resolved the registration first.

    Safe to retry after re-reading the registration.
    """

    def __init__(self, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.CONFLICT_STALE,
            message="Registration was changed concurrently",
        )
        self.registration_id = registration_id


class NotAuthorizedError(DomainError):
    """Raised when the actor may not perform the operation."""

    def __init__(self, actor_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_AUTHORIZED,
            message="Not authorized to perform this action",
        )
        self.actor_id = actor_id
