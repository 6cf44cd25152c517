"""Event service - read-side business logic for events.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

from collections.abc import Iterable

from events.domain import Event, EventId
from events.domain.errors import EventNotFoundError, InvalidEventIdError
from events.stores.interfaces import EventStore


class EventService:
    """Service for event lookups used by ticketing."""

    def __init__(self, store: EventStore) -> None:
        self._store = store

    def get_event(self, event_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        try:
            parsed = EventId.from_string(event_id)
        except ValueError as exc:
            raise InvalidEventIdError() from exc
        event = self._store.get_event(parsed)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def resolve_titles(
        self,
        event_ids: Iterable[EventId],
        locale: str | None = None,
        fallback: str | None = None,
    ) -> dict[EventId, str]:
        """Return one display title per event.

        The title in ``locale`` wins, then ``fallback``, then the event's own
        title.
        """
        preferred = [loc for loc in (locale, fallback) if loc]
        titles = self._store.get_titles(event_ids, preferred)
        resolved: dict[EventId, str] = {}
        for event_id, by_locale in titles.items():
            for loc in [*preferred, ""]:
                if by_locale.get(loc):
                    resolved[event_id] = by_locale[loc]
                    break
        return resolved
