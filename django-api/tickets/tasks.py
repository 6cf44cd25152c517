"""Celery tasks for ticket delivery and hold expiry."""

import logging
import smtplib

from celery import shared_task
from django.conf import settings

from events.domain.errors import EventNotFoundError
from events.services.event_service import EventService
from events.stores.django_store import DjangoEventStore
from tickets.domain import TicketId
from tickets.domain.errors import NotificationDispatchError
from tickets.emails import build_ticket_email
from tickets.stores.django_store import DjangoTicketStore

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, ignore_result=True)
def send_ticket_email(self, ticket_id: str, kind: str = "issued"):
    """Email a ticket with its QR code.

    SMTP problems are retried with backoff; after the last retry the failure
    is logged and dropped. The ticket itself is never touched.
    """
    ticket = DjangoTicketStore().get(TicketId.from_string(ticket_id))
    if ticket is None:
        logger.warning("Ticket %s vanished before its %s email was sent", ticket_id, kind)
        return

    events = EventService(DjangoEventStore())
    try:
        event = events.get_event(str(ticket.event_id))
    except EventNotFoundError:
        logger.warning(
            "Event %s of ticket %s is gone, skipping %s email", ticket.event_id, ticket_id, kind
        )
        return
    title = events.resolve_titles(
        [event.id], settings.TICKETS_DEFAULT_LOCALE, settings.TICKETS_FALLBACK_LOCALE
    ).get(event.id, event.title)

    try:
        build_ticket_email(ticket, event, title, kind).send(fail_silently=False)
    except (smtplib.SMTPException, OSError) as exc:
        error = NotificationDispatchError(ticket_id, str(exc))
        if self.request.retries < self.max_retries:
            logger.warning("%s, retrying", error)
            raise self.retry(exc=exc, countdown=30 * (self.request.retries + 1))
        logger.error("%s, giving up", error, exc_info=True)
        return

    logger.info("Sent %s email for ticket %s", kind, ticket.ticket_code)


@shared_task(ignore_result=True)
def cancel_expired_tickets():
    """Cancel PENDING tickets whose payment hold has passed."""
    from tickets.handlers.dependencies import get_lifecycle_service

    cancelled = get_lifecycle_service().cancel_expired()
    if cancelled:
        logger.info("Released %d expired ticket holds", len(cancelled))
    return len(cancelled)
