"""Django ORM implementation of the TicketStore."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import Q

from events.domain import EventId
from tickets import models
from tickets.domain import (
    ACTIVE_STATUSES,
    CheckinStatus,
    NewTicket,
    Ticket,
    TicketId,
    TicketQuery,
    TicketStatus,
)
from tickets.domain.errors import DuplicateRegistrationError
from tickets.stores.interfaces import TicketCodeTakenError, TicketStore

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("full_name", "email", "whatsapp", "ticket_code")


def to_domain(row: models.Ticket) -> Ticket:
    return Ticket(
        id=TicketId(row.id),
        event_id=EventId(row.event_id),
        full_name=row.full_name,
        email=row.email,
        whatsapp=row.whatsapp,
        school_or_campus=row.school_or_campus,
        class_or_semester=row.class_or_semester,
        domicile=row.domicile,
        ticket_code=row.ticket_code,
        qr_url=row.qr_url,
        status=TicketStatus(row.status),
        checkin_status=CheckinStatus(row.checkin_status),
        total_price=row.total_price,
        payment_method=row.payment_method,
        payment_reference=row.payment_reference,
        paid_at=row.paid_at,
        expires_at=row.expires_at,
        checked_in_at=row.checked_in_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def _column_values(changes: Mapping[str, Any]) -> dict[str, Any]:
    return {
        name: value.value if isinstance(value, Enum) else value
        for name, value in changes.items()
    }


class DjangoTicketStore(TicketStore):
    """PostgreSQL-backed ticket store using Django ORM."""

    def _live(self):
        return models.Ticket.objects.filter(deleted_at__isnull=True)

    def has_active_ticket(self, event_id: EventId, email: str) -> bool:
        return (
            self._live()
            .filter(
                event_id=event_id.value,
                email=email,
                status__in=[status.value for status in ACTIVE_STATUSES],
            )
            .exists()
        )

    def count_tickets(self, event_id: EventId, statuses: Iterable[TicketStatus]) -> int:
        return (
            self._live()
            .filter(event_id=event_id.value, status__in=[s.value for s in statuses])
            .count()
        )

    def create(self, ticket: NewTicket) -> Ticket:
        try:
            with transaction.atomic():
                row = models.Ticket.objects.create(
                    event_id=ticket.event_id.value,
                    full_name=ticket.full_name,
                    email=ticket.email.value,
                    whatsapp=ticket.whatsapp,
                    school_or_campus=ticket.school_or_campus,
                    class_or_semester=ticket.class_or_semester,
                    domicile=ticket.domicile,
                    ticket_code=ticket.ticket_code,
                    qr_url=ticket.qr_url,
                    status=ticket.status.value,
                    checkin_status=CheckinStatus.NOT_CHECKED_IN.value,
                    total_price=ticket.total_price,
                    payment_method=ticket.payment_method,
                    payment_reference=ticket.payment_reference,
                    paid_at=ticket.paid_at,
                    expires_at=ticket.expires_at,
                )
        except IntegrityError as exc:
            if models.Ticket.objects.filter(ticket_code=ticket.ticket_code).exists():
                raise TicketCodeTakenError(ticket.ticket_code) from exc
            if self.has_active_ticket(ticket.event_id, ticket.email.value):
                raise DuplicateRegistrationError(
                    str(ticket.event_id), ticket.email.value
                ) from exc
            raise
        return to_domain(row)

    def get(self, ticket_id: TicketId) -> Ticket | None:
        row = self._live().filter(pk=ticket_id.value).first()
        return to_domain(row) if row else None

    def get_by_code(self, code: str) -> Ticket | None:
        row = self._live().filter(ticket_code=code).first()
        return to_domain(row) if row else None

    @contextmanager
    def lock(self, ticket_id: TicketId) -> Iterator[Ticket | None]:
        with transaction.atomic():
            row = self._live().select_for_update().filter(pk=ticket_id.value).first()
            yield to_domain(row) if row else None

    def update(self, ticket_id: TicketId, changes: Mapping[str, Any]) -> Ticket:
        row = models.Ticket.objects.get(pk=ticket_id.value)
        for name, value in _column_values(changes).items():
            setattr(row, name, value)
        row.save(update_fields=[*changes.keys(), "updated_at"])
        return to_domain(row)

    def mark_checked_in(self, code: str, at: datetime) -> bool:
        updated = (
            self._live()
            .filter(
                ticket_code=code,
                status=TicketStatus.CONFIRMED.value,
                checkin_status=CheckinStatus.NOT_CHECKED_IN.value,
            )
            .update(
                checkin_status=CheckinStatus.CHECKED_IN.value,
                checked_in_at=at,
                updated_at=at,
            )
        )
        return updated == 1

    def record_checkin(self, ticket_id: TicketId, admin_id: Any | None) -> None:
        with transaction.atomic():
            models.TicketCheckinLog.objects.create(
                ticket_id=ticket_id.value, admin_id=admin_id
            )

    def soft_delete(self, ticket_id: TicketId, at: datetime) -> Ticket | None:
        with transaction.atomic():
            row = self._live().select_for_update().filter(pk=ticket_id.value).first()
            if row is None:
                return None
            row.deleted_at = at
            row.save(update_fields=["deleted_at", "updated_at"])
        return to_domain(row)

    def search(self, query: TicketQuery) -> tuple[int, list[Ticket]]:
        qs = self._live()
        if query.event_id:
            qs = qs.filter(event_id=query.event_id)
        if query.status:
            qs = qs.filter(status=query.status.value)
        if query.checkin_status:
            qs = qs.filter(checkin_status=query.checkin_status.value)
        if query.q:
            match = Q()
            for name in SEARCH_FIELDS:
                match |= Q(**{f"{name}__icontains": query.q})
            qs = qs.filter(match)
        total = qs.count()
        rows = qs.order_by("-created_at")[query.offset : query.offset + query.per_page]
        return total, [to_domain(row) for row in rows]

    def cancel_expired(self, now: datetime, dry_run: bool = False) -> list[TicketId]:
        with transaction.atomic():
            expired = self._live().filter(
                status=TicketStatus.PENDING.value,
                expires_at__isnull=False,
                expires_at__lte=now,
            )
            if not dry_run:
                expired = expired.select_for_update()
            ids = list(expired.values_list("pk", flat=True))
            if ids and not dry_run:
                models.Ticket.objects.filter(pk__in=ids).update(
                    status=TicketStatus.CANCELLED.value, updated_at=now
                )
                logger.info("Cancelled %d expired pending tickets", len(ids))
        return [TicketId(pk) for pk in ids]
