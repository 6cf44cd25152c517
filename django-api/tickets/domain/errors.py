"""Domain error codes for ticket admission and lifecycle."""

from enum import Enum
from typing import TYPE_CHECKING

from events.domain.errors import DomainError

if TYPE_CHECKING:
    from tickets.services.rate_limiter import RateLimitDecision


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    DUPLICATE_REGISTRATION = "DUPLICATE_REGISTRATION"
    SOLD_OUT = "SOLD_OUT"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CODE_GENERATION_FAILED = "CODE_GENERATION_FAILED"
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"


class RequestValidationError(DomainError):
    """Raised when required fields are missing or malformed."""

    def __init__(self, fields: dict[str, list[str]], message: str = "Invalid request") -> None:
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message)
        self.fields = fields


class TicketNotFoundError(DomainError):
    """Raised when a ticket id or code is unknown or soft-deleted."""

    def __init__(self, reference: str) -> None:
        super().__init__(code=ErrorCode.TICKET_NOT_FOUND, message="Ticket not found")
        self.reference = reference


class DuplicateRegistrationError(DomainError):
    """Raised when the email already holds an active ticket for the event."""

    def __init__(self, event_id: str, email: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_REGISTRATION,
            message="You are already registered for this event (one ticket per email).",
        )
        self.event_id = event_id
        self.email = email


class CapacityExceededError(DomainError):
    """Raised when the event has no capacity left."""

    def __init__(self, event_id: str, capacity: int) -> None:
        super().__init__(code=ErrorCode.SOLD_OUT, message="Tickets are sold out")
        self.event_id = event_id
        self.capacity = capacity


class RateLimitedError(DomainError):
    """Raised when either throttle scope is exhausted."""

    def __init__(self, decision: "RateLimitDecision") -> None:
        super().__init__(
            code=ErrorCode.RATE_LIMITED,
            message="Too many requests. Please try again later.",
        )
        self.decision = decision


class InvalidTransitionError(DomainError):
    """Raised when a status or check-in change is not allowed."""

    def __init__(self, current: str, requested: str, reason: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=reason or f"Cannot change ticket from {current} to {requested}",
        )
        self.current = current
        self.requested = requested


class GenerationCollisionError(DomainError):
    """Raised when every generated ticket code collided with an existing one."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            code=ErrorCode.CODE_GENERATION_FAILED,
            message="Failed to create ticket",
        )
        self.attempts = attempts


class NotificationDispatchError(DomainError):
    """Raised inside notification delivery; never reaches an HTTP caller."""

    def __init__(self, ticket_id: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.NOTIFICATION_FAILED,
            message=f"Ticket notification failed: {reason}",
        )
        self.ticket_id = ticket_id
