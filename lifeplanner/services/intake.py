"""Service that turns extraction candidates into stored events."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from lifeplanner.domain.models import (
    EventDraft,
    IntakeOutcome,
    IntakeResult,
    RawCandidate,
    SourceType,
)
from lifeplanner.repos.memory import EventStore
from lifeplanner.services.normalizer import normalize_candidate
from lifeplanner.services.recurrence import expand_recurrence

logger = logging.getLogger(__name__)

_NOTHING_FOUND = {
    SourceType.TEXT: "Nothing to add here, type something else ;)",
    SourceType.FILE: "Couldn't find an event in this document.",
}
_ARCHIVED = "Past event detected & archived"


def ingest_candidates(
    candidates: Sequence[RawCandidate],
    source_type: SourceType,
    store: EventStore,
) -> IntakeResult:
    """Normalize, expand and store *candidates* as one batch."""
    today = store.today()
    drafts: list[EventDraft] = []
    for candidate in candidates:
        if not candidate.is_event:
            continue
        drafts.extend(expand_recurrence(normalize_candidate(candidate, today), today))

    if not drafts:
        logger.info("No events produced from %d candidates", len(candidates))
        return IntakeResult(
            outcome=IntakeOutcome.NO_EVENTS, message=_NOTHING_FOUND[source_type]
        )

    events = store.insert(drafts, source_type=source_type)
    logger.info("Stored %d events from %s input", len(events), source_type)

    if all(e.date is not None and e.date < today.isoformat() for e in events):
        return IntakeResult(outcome=IntakeOutcome.ARCHIVED, message=_ARCHIVED, events=events)
    return IntakeResult(outcome=IntakeOutcome.ADDED, events=events)
