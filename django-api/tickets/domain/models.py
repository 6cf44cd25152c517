"""Domain models for ticket admission.

Django ORM models are in tickets/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime

from events.domain import EventId
from tickets.domain.errors import RequestValidationError
from tickets.domain.value_objects import CheckinStatus, Email, TicketId, TicketStatus


@dataclass(frozen=True)
class RegistrationRequest:
    """A public registration, normalized at the HTTP boundary."""

    event_id: str
    full_name: str
    email: Email
    whatsapp: str | None = None
    school_or_campus: str | None = None
    class_or_semester: str | None = None
    domicile: str | None = None
    payment_method: str | None = None
    payment_reference: str | None = None

    def __post_init__(self) -> None:
        missing = {}
        if not (self.event_id or "").strip():
            missing["event_id"] = ["This field is required."]
        if not (self.full_name or "").strip():
            missing["full_name"] = ["This field is required."]
        if not self.email.value:
            missing["email"] = ["This field is required."]
        if missing:
            raise RequestValidationError(
                missing, message="event_id, full_name, email are required"
            )


@dataclass(frozen=True)
class NewTicket:
    """Everything needed to insert a ticket row."""

    event_id: EventId
    full_name: str
    email: Email
    whatsapp: str | None
    school_or_campus: str | None
    class_or_semester: str | None
    domicile: str | None
    ticket_code: str
    qr_url: str
    status: TicketStatus
    total_price: int
    payment_method: str | None
    payment_reference: str | None
    paid_at: datetime | None
    expires_at: datetime | None


@dataclass(frozen=True)
class Ticket:
    """Domain representation of a Ticket."""

    id: TicketId
    event_id: EventId
    full_name: str
    email: str
    whatsapp: str | None
    school_or_campus: str | None
    class_or_semester: str | None
    domicile: str | None
    ticket_code: str
    qr_url: str
    status: TicketStatus
    checkin_status: CheckinStatus
    total_price: int
    payment_method: str | None
    payment_reference: str | None
    paid_at: datetime | None
    expires_at: datetime | None
    checked_in_at: datetime | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_checked_in(self) -> bool:
        return self.checkin_status is CheckinStatus.CHECKED_IN


@dataclass(frozen=True)
class TicketQuery:
    """Filters and paging for the administrative ticket list."""

    page: int = 1
    per_page: int = 20
    event_id: str | None = None
    status: TicketStatus | None = None
    checkin_status: CheckinStatus | None = None
    q: str = ""
    locale: str | None = None
    fallback: str | None = None

    MAX_PER_PAGE = 100

    def __post_init__(self) -> None:
        object.__setattr__(self, "page", max(1, self.page))
        object.__setattr__(
            self, "per_page", min(self.MAX_PER_PAGE, max(1, self.per_page))
        )
        object.__setattr__(self, "q", (self.q or "").strip())

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass(frozen=True)
class TicketPage:
    page: int
    per_page: int
    total: int
    items: list[Ticket] = field(default_factory=list)
    event_titles: dict[EventId, str] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.per_page) if self.total else 0


@dataclass(frozen=True)
class CheckinResult:
    ticket: Ticket
    already_checked_in: bool
