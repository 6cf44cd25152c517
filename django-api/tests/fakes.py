"""In-memory stores for service tests.

They honour the same contracts as the Django stores, including the per-event
admission lock, so concurrency behaviour can be tested without a database.
"""

import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone

from events.domain import Capacity, Event, EventId, Money, PricingType
from events.stores.interfaces import EventStore
from tickets.domain import (
    ACTIVE_STATUSES,
    CheckinStatus,
    IssuedCode,
    Ticket,
    TicketId,
    TicketStatus,
)
from tickets.domain.errors import DuplicateRegistrationError
from tickets.services.notifications import NotificationDispatcher
from tickets.stores.interfaces import TicketCodeTakenError, TicketStore


def make_event(
    capacity: int | None = None,
    pricing_type: PricingType = PricingType.FREE,
    price: int = 0,
    is_published: bool = True,
    title: str = "Campus Expo",
) -> Event:
    return Event(
        id=EventId(uuid.uuid4()),
        title=title,
        location="Main Hall",
        start_at=datetime(2030, 5, 1, 9, tzinfo=timezone.utc),
        end_at=datetime(2030, 5, 1, 17, tzinfo=timezone.utc),
        is_published=is_published,
        pricing_type=pricing_type,
        ticket_price=Money(price),
        capacity=Capacity(capacity) if capacity is not None else None,
    )


class InMemoryEventStore(EventStore):
    def __init__(self, *events: Event) -> None:
        self.events = {event.id: event for event in events}
        self.translations: dict[EventId, dict[str, str]] = defaultdict(dict)
        self._locks = {event.id: threading.Lock() for event in events}
        self._missing = threading.Lock()

    def add(self, event: Event) -> Event:
        self.events[event.id] = event
        self._locks.setdefault(event.id, threading.Lock())
        return event

    def get_event(self, event_id):
        return self.events.get(event_id)

    @contextmanager
    def lock_for_admission(self, event_id):
        with self._locks.get(event_id, self._missing):
            event = self.events.get(event_id)
            yield event if event is not None and event.is_published else None

    def get_titles(self, event_ids, locales):
        titles = {}
        for event_id in event_ids:
            event = self.events.get(event_id)
            if event is None:
                continue
            titles[event_id] = {"": event.title, **self.translations[event_id]}
        return titles


class InMemoryTicketStore(TicketStore):
    def __init__(self, now: datetime | None = None) -> None:
        self.tickets: dict[TicketId, Ticket] = {}
        self.checkin_logs: list[tuple[TicketId, object]] = []
        self.taken_codes: set[str] = set()
        self.fail_checkin_log = False
        self._now = now or datetime(2030, 1, 1, tzinfo=timezone.utc)
        self._mutex = threading.RLock()

    def _live(self):
        return [t for t in self.tickets.values() if t.deleted_at is None]

    def has_active_ticket(self, event_id, email):
        with self._mutex:
            return any(
                t.event_id == event_id and t.email == email and t.status in ACTIVE_STATUSES
                for t in self._live()
            )

    def count_tickets(self, event_id, statuses):
        statuses = set(statuses)
        with self._mutex:
            return sum(
                1 for t in self._live() if t.event_id == event_id and t.status in statuses
            )

    def create(self, ticket):
        with self._mutex:
            if ticket.ticket_code in self.taken_codes or any(
                t.ticket_code == ticket.ticket_code for t in self.tickets.values()
            ):
                raise TicketCodeTakenError(ticket.ticket_code)
            if self.has_active_ticket(ticket.event_id, ticket.email.value):
                raise DuplicateRegistrationError(str(ticket.event_id), ticket.email.value)
            created = Ticket(
                id=TicketId(uuid.uuid4()),
                event_id=ticket.event_id,
                full_name=ticket.full_name,
                email=ticket.email.value,
                whatsapp=ticket.whatsapp,
                school_or_campus=ticket.school_or_campus,
                class_or_semester=ticket.class_or_semester,
                domicile=ticket.domicile,
                ticket_code=ticket.ticket_code,
                qr_url=ticket.qr_url,
                status=ticket.status,
                checkin_status=CheckinStatus.NOT_CHECKED_IN,
                total_price=ticket.total_price,
                payment_method=ticket.payment_method,
                payment_reference=ticket.payment_reference,
                paid_at=ticket.paid_at,
                expires_at=ticket.expires_at,
                checked_in_at=None,
                created_at=self._now,
                updated_at=self._now,
            )
            self.tickets[created.id] = created
            return created

    def get(self, ticket_id):
        ticket = self.tickets.get(ticket_id)
        return ticket if ticket is not None and ticket.deleted_at is None else None

    def get_by_code(self, code):
        return next((t for t in self._live() if t.ticket_code == code), None)

    @contextmanager
    def lock(self, ticket_id):
        with self._mutex:
            yield self.get(ticket_id)

    def update(self, ticket_id, changes):
        with self._mutex:
            updated = replace(self.tickets[ticket_id], **changes)
            self.tickets[ticket_id] = updated
            return updated

    def mark_checked_in(self, code, at):
        with self._mutex:
            ticket = self.get_by_code(code)
            if (
                ticket is None
                or ticket.status is not TicketStatus.CONFIRMED
                or ticket.checkin_status is not CheckinStatus.NOT_CHECKED_IN
            ):
                return False
            self.tickets[ticket.id] = replace(
                ticket, checkin_status=CheckinStatus.CHECKED_IN, checked_in_at=at
            )
            return True

    def record_checkin(self, ticket_id, admin_id):
        if self.fail_checkin_log:
            raise RuntimeError("audit table unavailable")
        self.checkin_logs.append((ticket_id, admin_id))

    def soft_delete(self, ticket_id, at):
        with self._mutex:
            ticket = self.get(ticket_id)
            if ticket is None:
                return None
            deleted = replace(ticket, deleted_at=at)
            self.tickets[ticket_id] = deleted
            return deleted

    def search(self, query):
        rows = self._live()
        if query.event_id:
            rows = [t for t in rows if str(t.event_id) == query.event_id]
        if query.status:
            rows = [t for t in rows if t.status is query.status]
        if query.checkin_status:
            rows = [t for t in rows if t.checkin_status is query.checkin_status]
        if query.q:
            needle = query.q.lower()
            rows = [
                t
                for t in rows
                if any(
                    needle in (value or "").lower()
                    for value in (t.full_name, t.email, t.whatsapp, t.ticket_code)
                )
            ]
        rows.sort(key=lambda t: t.created_at, reverse=True)
        return len(rows), rows[query.offset : query.offset + query.per_page]

    def cancel_expired(self, now, dry_run=False):
        with self._mutex:
            expired = [
                t
                for t in self._live()
                if t.status is TicketStatus.PENDING
                and t.expires_at is not None
                and t.expires_at <= now
            ]
            if not dry_run:
                for ticket in expired:
                    self.tickets[ticket.id] = replace(ticket, status=TicketStatus.CANCELLED)
            return [t.id for t in expired]


class RecordingDispatcher(NotificationDispatcher):
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    def ticket_issued(self, ticket):
        if self.fail:
            raise ConnectionError("broker down")
        self.sent.append(("issued", ticket.ticket_code))

    def ticket_resent(self, ticket):
        if self.fail:
            raise ConnectionError("broker down")
        self.sent.append(("resent", ticket.ticket_code))


class FixedCodes:
    """Code generator that replays a fixed sequence of codes."""

    def __init__(self, *codes: str) -> None:
        self._codes = iter(codes)

    def generate(self):
        code = next(self._codes)
        return IssuedCode(code=code, qr_url=f"https://tickets.test/api/tickets/qr?code={code}")
