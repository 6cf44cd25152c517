"""Django ORM implementation of the EventStore."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from django.db import transaction

from events import models
from events.domain import Capacity, Event, EventId, Money, PricingType
from events.stores.interfaces import EventStore


def to_domain(row: models.Event) -> Event:
    return Event(
        id=EventId(row.id),
        title=row.title,
        location=row.location,
        start_at=row.start_at,
        end_at=row.end_at,
        is_published=row.is_published,
        pricing_type=PricingType(row.pricing_type),
        ticket_price=Money(row.ticket_price or 0),
        capacity=Capacity(row.capacity) if row.capacity is not None else None,
    )


class DjangoEventStore(EventStore):
    """PostgreSQL-backed event store using Django ORM."""

    def get_event(self, event_id: EventId) -> Event | None:
        row = models.Event.objects.filter(
            pk=event_id.value, deleted_at__isnull=True
        ).first()
        return to_domain(row) if row else None

    @contextmanager
    def lock_for_admission(self, event_id: EventId) -> Iterator[Event | None]:
        with transaction.atomic():
            row = (
                models.Event.objects.select_for_update()
                .filter(pk=event_id.value, deleted_at__isnull=True, is_published=True)
                .first()
            )
            yield to_domain(row) if row else None

    def get_titles(
        self, event_ids: Iterable[EventId], locales: Iterable[str]
    ) -> dict[EventId, dict[str, str]]:
        ids = {event_id.value for event_id in event_ids}
        if not ids:
            return {}
        titles: dict[EventId, dict[str, str]] = {}
        for pk, title in models.Event.objects.filter(pk__in=ids).values_list(
            "pk", "title"
        ):
            titles[EventId(pk)] = {"": title}
        translations = models.EventTranslation.objects.filter(
            event_id__in=ids, locale__in=[loc for loc in locales if loc]
        ).values_list("event_id", "locale", "title")
        for pk, locale, title in translations:
            titles.setdefault(EventId(pk), {})[locale] = title
        return titles
