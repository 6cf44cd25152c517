"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any

from events.domain import EventId
from tickets.domain import NewTicket, Ticket, TicketId, TicketQuery, TicketStatus


class TicketCodeTakenError(Exception):
    """Raised by ``create`` when the ticket code is already in use."""


class TicketStore(ABC):
    """Interface for ticket persistence operations."""

    @abstractmethod
    def has_active_ticket(self, event_id: EventId, email: str) -> bool:
        """Return True if a non-deleted PENDING/CONFIRMED ticket exists."""
        ...

    @abstractmethod
    def count_tickets(self, event_id: EventId, statuses: Iterable[TicketStatus]) -> int:
        """Count non-deleted tickets of an event with one of ``statuses``."""
        ...

    @abstractmethod
    def create(self, ticket: NewTicket) -> Ticket:
        """Insert a ticket.

        Raises:
            TicketCodeTakenError: If ``ticket.ticket_code`` already exists.
            DuplicateRegistrationError: If an active ticket for the same
                event and email already exists.
        """
        ...

    @abstractmethod
    def get(self, ticket_id: TicketId) -> Ticket | None:
        """Return a non-deleted ticket by ID, or None."""
        ...

    @abstractmethod
    def get_by_code(self, code: str) -> Ticket | None:
        """Return a non-deleted ticket by ticket code, or None."""
        ...

    @abstractmethod
    def lock(self, ticket_id: TicketId) -> AbstractContextManager[Ticket | None]:
        """Yield the non-deleted ticket with its row locked until exit."""
        ...

    @abstractmethod
    def update(self, ticket_id: TicketId, changes: Mapping[str, Any]) -> Ticket:
        """Apply field changes and return the updated ticket."""
        ...

    @abstractmethod
    def mark_checked_in(self, code: str, at: datetime) -> bool:
        """Atomically flip a CONFIRMED, NOT_CHECKED_IN ticket to CHECKED_IN.

        Returns True if this call performed the check-in.
        """
        ...

    @abstractmethod
    def record_checkin(self, ticket_id: TicketId, admin_id: Any | None) -> None:
        """Append a check-in audit entry."""
        ...

    @abstractmethod
    def soft_delete(self, ticket_id: TicketId, at: datetime) -> Ticket | None:
        """Set ``deleted_at``; return the deleted ticket or None if unknown."""
        ...

    @abstractmethod
    def search(self, query: TicketQuery) -> tuple[int, list[Ticket]]:
        """Return the total match count and the requested page, newest first."""
        ...

    @abstractmethod
    def cancel_expired(self, now: datetime, dry_run: bool = False) -> list[TicketId]:
        """Cancel PENDING tickets whose hold expired; return their IDs."""
        ...
