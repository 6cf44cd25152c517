"""Admission service - decides whether a registration becomes a ticket.

The duplicate check, the capacity count and the insert all run inside
``EventStore.lock_for_admission`` so concurrent registrations for one event
behave as if they were serialized.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from django.utils import timezone

from events.domain import Event, EventId
from events.domain.errors import EventNotFoundError
from events.stores.interfaces import EventStore
from tickets.domain import NewTicket, RegistrationRequest, Ticket
from tickets.domain.errors import (
    CapacityExceededError,
    DuplicateRegistrationError,
    GenerationCollisionError,
)
from tickets.domain.lifecycle import capacity_counted_statuses, initial_status
from tickets.services.notifications import ISSUED, NotificationDispatcher, dispatch_safely
from tickets.services.ticket_codes import TicketCodeGenerator
from tickets.stores.interfaces import TicketCodeTakenError, TicketStore

logger = logging.getLogger(__name__)


class AdmissionService:
    """Turns registration requests into tickets."""

    def __init__(
        self,
        events: EventStore,
        tickets: TicketStore,
        codes: TicketCodeGenerator,
        notifier: NotificationDispatcher,
        max_code_attempts: int = 5,
        pending_hold: timedelta | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._events = events
        self._tickets = tickets
        self._codes = codes
        self._notifier = notifier
        self._max_code_attempts = max(1, max_code_attempts)
        self._pending_hold = pending_hold
        self._clock = clock

    def admit(self, request: RegistrationRequest) -> Ticket:
        """Admit a registrant to an event.

        Raises:
            EventNotFoundError: If the event is unknown, deleted or unpublished.
            DuplicateRegistrationError: If the email already holds an active ticket.
            CapacityExceededError: If the event is full.
            GenerationCollisionError: If no unique ticket code could be generated.
        """
        try:
            event_id = EventId.from_string(request.event_id)
        except ValueError as exc:
            raise EventNotFoundError(request.event_id) from exc

        email = request.email.value
        with self._events.lock_for_admission(event_id) as event:
            if event is None:
                raise EventNotFoundError(request.event_id)
            if self._tickets.has_active_ticket(event.id, email):
                logger.info("Duplicate registration for event %s", event.id)
                raise DuplicateRegistrationError(str(event.id), email)
            if event.capacity is not None:
                used = self._tickets.count_tickets(
                    event.id, capacity_counted_statuses(event.is_paid)
                )
                if event.capacity.is_reached_by(used):
                    logger.info(
                        "Event %s sold out (%d/%d)", event.id, used, event.capacity.value
                    )
                    raise CapacityExceededError(str(event.id), event.capacity.value)
            ticket = self._issue(event, request)

        logger.info(
            "Admitted %s to event %s as %s", ticket.ticket_code, event_id, ticket.status.value
        )
        dispatch_safely(self._notifier, ticket, ISSUED)
        return ticket

    def _issue(self, event: Event, request: RegistrationRequest) -> Ticket:
        now = self._clock()
        is_paid = event.is_paid
        for attempt in range(1, self._max_code_attempts + 1):
            issued = self._codes.generate()
            new_ticket = NewTicket(
                event_id=event.id,
                full_name=request.full_name.strip(),
                email=request.email,
                whatsapp=request.whatsapp,
                school_or_campus=request.school_or_campus,
                class_or_semester=request.class_or_semester,
                domicile=request.domicile,
                ticket_code=issued.code,
                qr_url=issued.qr_url,
                status=initial_status(is_paid),
                total_price=event.ticket_price.amount if is_paid else 0,
                payment_method=request.payment_method if is_paid else None,
                payment_reference=request.payment_reference if is_paid else None,
                paid_at=None if is_paid else now,
                expires_at=now + self._pending_hold if is_paid and self._pending_hold else None,
            )
            try:
                return self._tickets.create(new_ticket)
            except TicketCodeTakenError:
                logger.warning(
                    "Ticket code collision on attempt %d/%d", attempt, self._max_code_attempts
                )
        logger.error(
            "Ticket code space exhausted after %d attempts for event %s",
            self._max_code_attempts,
            event.id,
        )
        raise GenerationCollisionError(self._max_code_attempts)
