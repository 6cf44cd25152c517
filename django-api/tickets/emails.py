"""Ticket confirmation email."""

from email.mime.image import MIMEImage

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from events.domain import Event
from tickets.domain import Ticket, TicketStatus
from tickets.qr import render_qr_png
from tickets.services.notifications import RESENT

QR_CONTENT_ID = "ticketqr"


def _heading(ticket: Ticket, kind: str) -> str:
    if kind == RESENT:
        return "Your ticket (copy)"
    if ticket.status is TicketStatus.PENDING:
        return "Ticket pending payment"
    return "Ticket booked"


def build_ticket_email(
    ticket: Ticket, event: Event, event_title: str, kind: str
) -> EmailMultiAlternatives:
    """Build the ticket email with the QR code attached inline."""
    context = {
        "heading": _heading(ticket, kind),
        "ticket": ticket,
        "event_title": event_title,
        "start_at": event.start_at,
        "end_at": event.end_at,
        "location": event.location,
        "is_pending": ticket.status is TicketStatus.PENDING,
        "total_price": f"{ticket.total_price:,}",
    }
    message = EmailMultiAlternatives(
        subject=f"Ticket {event_title}",
        body=render_to_string("tickets/email/ticket.txt", context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[ticket.email],
    )
    message.attach_alternative(
        render_to_string("tickets/email/ticket.html", context), "text/html"
    )
    message.mixed_subtype = "related"

    image = MIMEImage(render_qr_png(ticket.ticket_code), _subtype="png")
    image.add_header("Content-ID", f"<{QR_CONTENT_ID}>")
    image.add_header("Content-Disposition", "inline", filename="ticket-qr.png")
    message.attach(image)
    return message
