"""In-memory event store."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import date

from lifeplanner.domain.models import Event, EventDraft, SourceType
from lifeplanner.services.issues import flag_changes

logger = logging.getLogger(__name__)


class EventStore:
    """List-backed store for Event instances, newest first.

    Every mutation recomputes the past/conflict flags for the whole set
    while still holding the lock, so readers never see stale flags.
    """

    def __init__(self, clock: Callable[[], date] = date.today) -> None:
        self._events: list[Event] = []
        self._lock = threading.RLock()
        self._clock = clock

    def today(self) -> date:
        return self._clock()

    def insert(
        self,
        drafts: Iterable[EventDraft],
        source_type: SourceType = SourceType.TEXT,
    ) -> list[Event]:
        """Store *drafts* as new events at the front of the collection."""
        # Always mint a fresh id and flags, even when handed a stored Event.
        draft_fields = set(EventDraft.model_fields)
        new_events = [
            Event(**draft.model_dump(include=draft_fields), source_type=source_type)
            for draft in drafts
        ]
        with self._lock:
            self._events[:0] = new_events
            self._recompute()
            ids = {e.id for e in new_events}
            return [e for e in self._events if e.id in ids]

    def get(self, event_id: str) -> Event | None:
        with self._lock:
            for event in self._events:
                if event.id == event_id:
                    return event
        return None

    def list_all(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def update(self, event_id: str, changes: dict) -> Event | None:
        """Merge *changes* into the event; unknown ids are ignored."""
        with self._lock:
            index = self._index_of(event_id)
            if index is None:
                logger.debug("update ignored, no event %s", event_id)
                return None
            current = self._events[index]
            merged = {**current.model_dump(), **changes, "id": current.id}
            self._events[index] = Event.model_validate(merged)
            self._recompute()
            return self._events[index]

    def delete(self, event_id: str) -> None:
        with self._lock:
            index = self._index_of(event_id)
            if index is None:
                logger.debug("delete ignored, no event %s", event_id)
                return
            del self._events[index]
            self._recompute()

    def recompute_issues(self) -> None:
        """Re-derive flags, e.g. after the date rolled over."""
        with self._lock:
            self._recompute()

    def _index_of(self, event_id: str) -> int | None:
        for index, event in enumerate(self._events):
            if event.id == event_id:
                return index
        return None

    def _recompute(self) -> None:
        changes = flag_changes(self._events, self._clock())
        if not changes:
            return
        self._events = [
            e.model_copy(update=changes[e.id]) if e.id in changes else e
            for e in self._events
        ]
        logger.debug("recomputed flags for %d events", len(changes))
