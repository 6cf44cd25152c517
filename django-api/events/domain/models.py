"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime

from events.domain.value_objects import Capacity, EventId, Money, PricingType


@dataclass(frozen=True)
class Event:
    """Admission policy of an event as seen by ticket registration."""

    id: EventId
    title: str
    location: str
    start_at: datetime | None
    end_at: datetime | None
    is_published: bool
    pricing_type: PricingType
    ticket_price: Money
    capacity: Capacity | None = None

    @property
    def is_paid(self) -> bool:
        return self.pricing_type is PricingType.PAID

    @property
    def is_unlimited(self) -> bool:
        return self.capacity is None
