"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager

from events.domain import Event, EventId


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found or soft-deleted."""
        ...

    @abstractmethod
    def lock_for_admission(
        self, event_id: EventId
    ) -> AbstractContextManager[Event | None]:
        """Open the atomic admission unit for an event.

        The context yields the event if it is published and not deleted,
        otherwise None. Until the context exits, no other admission for the
        same event can proceed, and all ticket store calls made inside it
        belong to the same transaction.
        """
        ...

    @abstractmethod
    def get_titles(
        self, event_ids: Iterable[EventId], locales: Iterable[str]
    ) -> dict[EventId, dict[str, str]]:
        """Return localized titles per event, keyed by locale.

        The event's own title is included under the empty-string locale.
        """
        ...
