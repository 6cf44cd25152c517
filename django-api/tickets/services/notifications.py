"""Ticket notification scheduling.

The admission and lifecycle services only *schedule* delivery. Delivery runs
in a Celery worker, and scheduling problems are logged, never raised.
"""

import logging
from abc import ABC, abstractmethod

from tickets.domain import Ticket

logger = logging.getLogger(__name__)

ISSUED = "issued"
RESENT = "resent"


class NotificationDispatcher(ABC):
    """Interface for handing ticket messages to a delivery channel."""

    @abstractmethod
    def ticket_issued(self, ticket: Ticket) -> None:
        ...

    @abstractmethod
    def ticket_resent(self, ticket: Ticket) -> None:
        ...


class CeleryNotificationDispatcher(NotificationDispatcher):
    """Queues the ticket email on the ``emails`` Celery queue."""

    def ticket_issued(self, ticket: Ticket) -> None:
        self._schedule(ticket, ISSUED)

    def ticket_resent(self, ticket: Ticket) -> None:
        self._schedule(ticket, RESENT)

    def _schedule(self, ticket: Ticket, kind: str) -> None:
        from tickets.tasks import send_ticket_email

        send_ticket_email.delay(str(ticket.id), kind)
        logger.debug("Queued %s email for ticket %s", kind, ticket.ticket_code)


def dispatch_safely(dispatcher: NotificationDispatcher, ticket: Ticket, kind: str) -> None:
    """Hand a ticket to the dispatcher, logging instead of raising on failure."""
    try:
        if kind == RESENT:
            dispatcher.ticket_resent(ticket)
        else:
            dispatcher.ticket_issued(ticket)
    except Exception:
        logger.warning(
            "Could not schedule %s notification for ticket %s",
            kind,
            ticket.ticket_code,
            exc_info=True,
        )
