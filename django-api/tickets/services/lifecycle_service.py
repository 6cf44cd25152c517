"""Ticket lifecycle service - administrative changes and door check-in.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from django.utils import timezone

from events.domain import EventId
from events.domain.errors import InvalidEventIdError
from events.services.event_service import EventService
from tickets.domain import (
    CheckinResult,
    CheckinStatus,
    Ticket,
    TicketId,
    TicketPage,
    TicketQuery,
    TicketStatus,
)
from tickets.domain.errors import (
    InvalidTransitionError,
    RequestValidationError,
    TicketNotFoundError,
)
from tickets.domain.lifecycle import ensure_can_check_in, ensure_transition
from tickets.services.notifications import RESENT, NotificationDispatcher, dispatch_safely
from tickets.services.ticket_codes import extract_ticket_code
from tickets.stores.interfaces import TicketStore

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = frozenset(
    {"status", "payment_method", "payment_reference", "total_price", "paid_at", "expires_at"}
)


class TicketLifecycleService:
    """Service for ticket administration and check-in."""

    def __init__(
        self,
        tickets: TicketStore,
        events: EventService,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._tickets = tickets
        self._events = events
        self._notifier = notifier
        self._clock = clock

    def get_ticket(self, ticket_id: str) -> Ticket:
        """Return a ticket by ID.

        Raises:
            TicketNotFoundError: If the id is malformed, unknown or deleted.
        """
        ticket = self._tickets.get(self._parse_id(ticket_id))
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def event_title(
        self, ticket: Ticket, locale: str | None = None, fallback: str | None = None
    ) -> str | None:
        return self._events.resolve_titles([ticket.event_id], locale, fallback).get(
            ticket.event_id
        )

    def list_tickets(self, query: TicketQuery) -> TicketPage:
        """Return one page of non-deleted tickets with resolved event titles.

        Raises:
            InvalidEventIdError: If the event_id filter is not a valid UUID.
        """
        if query.event_id:
            try:
                EventId.from_string(query.event_id)
            except ValueError as exc:
                raise InvalidEventIdError() from exc
        total, items = self._tickets.search(query)
        titles = self._events.resolve_titles(
            {ticket.event_id for ticket in items}, query.locale, query.fallback
        )
        return TicketPage(
            page=query.page,
            per_page=query.per_page,
            total=total,
            items=items,
            event_titles=titles,
        )

    def update_ticket(
        self, ticket_id: str, changes: Mapping[str, Any], resend: bool = False
    ) -> Ticket:
        """Apply a partial administrative update.

        Only keys in PATCHABLE_FIELDS are applied; absent keys are untouched.
        Confirming a ticket stamps ``paid_at`` unless one is supplied or
        already recorded.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
            InvalidTransitionError: If the status change is not allowed.
        """
        tid = self._parse_id(ticket_id)
        fields = {name: value for name, value in changes.items() if name in PATCHABLE_FIELDS}

        with self._tickets.lock(tid) as ticket:
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            if "status" in fields:
                target = TicketStatus(fields["status"])
                if ensure_transition(ticket.status, target):
                    fields["status"] = target
                    if (
                        target is TicketStatus.CONFIRMED
                        and "paid_at" not in fields
                        and ticket.paid_at is None
                    ):
                        fields["paid_at"] = self._clock()
                else:
                    del fields["status"]
            updated = self._tickets.update(tid, fields) if fields else ticket

        if "status" in fields:
            logger.info(
                "Ticket %s moved %s -> %s",
                updated.ticket_code,
                ticket.status.value,
                updated.status.value,
            )
        if resend:
            dispatch_safely(self._notifier, updated, RESENT)
        return updated

    def check_in(self, scanned: str, admin_id: Any | None = None) -> CheckinResult:
        """Check a ticket in at the door.

        Scanning an already checked-in ticket succeeds without changes.

        Raises:
            RequestValidationError: If no code was supplied.
            TicketNotFoundError: If the code is unknown or deleted.
            InvalidTransitionError: If the ticket is not CONFIRMED.
        """
        code = extract_ticket_code(scanned)
        if not code:
            raise RequestValidationError({"code": ["This field is required."]}, "code is required")

        for _ in range(2):
            if self._tickets.mark_checked_in(code, self._clock()):
                ticket = self._tickets.get_by_code(code)
                self._log_checkin(ticket, admin_id)
                logger.info("Checked in ticket %s", code)
                return CheckinResult(ticket=ticket, already_checked_in=False)
            ticket = self._tickets.get_by_code(code)
            if ticket is None:
                raise TicketNotFoundError(code)
            if not ensure_can_check_in(ticket.status, ticket.checkin_status):
                return CheckinResult(ticket=ticket, already_checked_in=True)
        raise InvalidTransitionError(
            ticket.status.value,
            CheckinStatus.CHECKED_IN.value,
            reason="Ticket changed during check-in, please scan again",
        )

    def delete_ticket(self, ticket_id: str) -> Ticket:
        """Soft-delete a ticket, releasing its seat and email slot.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
        """
        deleted = self._tickets.soft_delete(self._parse_id(ticket_id), self._clock())
        if deleted is None:
            raise TicketNotFoundError(ticket_id)
        logger.info("Soft-deleted ticket %s", deleted.ticket_code)
        return deleted

    def cancel_expired(
        self, now: datetime | None = None, dry_run: bool = False
    ) -> list[TicketId]:
        """Cancel PENDING tickets whose payment hold has expired."""
        return self._tickets.cancel_expired(now or self._clock(), dry_run=dry_run)

    def _log_checkin(self, ticket: Ticket, admin_id: Any | None) -> None:
        try:
            self._tickets.record_checkin(ticket.id, admin_id)
        except Exception:
            logger.warning(
                "Could not record check-in log for %s", ticket.ticket_code, exc_info=True
            )

    @staticmethod
    def _parse_id(ticket_id: str) -> TicketId:
        try:
            return TicketId.from_string(ticket_id)
        except ValueError as exc:
            raise TicketNotFoundError(ticket_id) from exc
