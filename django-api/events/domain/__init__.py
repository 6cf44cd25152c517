from events.domain.models import Event
from events.domain.value_objects import Capacity, EventId, Money, PricingType

__all__ = [
    "Event",
    "EventId",
    "Money",
    "Capacity",
    "PricingType",
]
