from tickets.domain.models import (
    CheckinResult,
    NewTicket,
    RegistrationRequest,
    Ticket,
    TicketPage,
    TicketQuery,
)
from tickets.domain.value_objects import (
    ACTIVE_STATUSES,
    CheckinStatus,
    Email,
    IssuedCode,
    TicketId,
    TicketStatus,
)

__all__ = [
    "Ticket",
    "NewTicket",
    "RegistrationRequest",
    "TicketQuery",
    "TicketPage",
    "CheckinResult",
    "TicketId",
    "TicketStatus",
    "CheckinStatus",
    "ACTIVE_STATUSES",
    "Email",
    "IssuedCode",
]
