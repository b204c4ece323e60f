"""Service for deriving past and conflict flags over the whole event set."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from itertools import combinations
from typing import NamedTuple

from lifeplanner.domain.models import Event


class IssueFlags(NamedTuple):
    is_past: bool
    is_conflict: bool


def is_past(event: Event, today: date) -> bool:
    """Dated events before *today* are past; undated events never are."""
    return event.date is not None and event.date < today.isoformat()


def events_conflict(a: Event, b: Event) -> bool:
    """Return True when two same-day events clash.

    Fully timed events conflict when their ranges overlap; touching ends
    (10:00-11:00 after 09:00-10:00) do not. Otherwise only identical start
    times count as a clash.
    """
    if a.start_time and a.end_time and b.start_time and b.end_time:
        return a.start_time < b.end_time and a.end_time > b.start_time
    return bool(a.start_time and b.start_time and a.start_time == b.start_time)


def find_conflicting_ids(events: list[Event], today: date) -> set[str]:
    """Return ids of every non-past event that clashes with another one."""
    by_date: dict[str, list[Event]] = defaultdict(list)
    for event in events:
        if event.date is not None and not is_past(event, today):
            by_date[event.date].append(event)

    conflicting: set[str] = set()
    for day_events in by_date.values():
        for a, b in combinations(day_events, 2):
            if events_conflict(a, b):
                conflicting.add(a.id)
                conflicting.add(b.id)
    return conflicting


def detect_issues(events: list[Event], today: date) -> dict[str, IssueFlags]:
    """Compute the flags for every event from scratch."""
    conflicting = find_conflicting_ids(events, today)
    return {
        event.id: IssueFlags(
            is_past=is_past(event, today), is_conflict=event.id in conflicting
        )
        for event in events
    }


def flag_changes(events: list[Event], today: date) -> dict[str, dict[str, bool]]:
    """Return only the flag values that differ from what the events carry.

    Flags never feed back into the date/time grouping, so a single pass
    reaches a fixed point.
    """
    changes: dict[str, dict[str, bool]] = {}
    flags_by_id = detect_issues(events, today)
    for event in events:
        flags = flags_by_id[event.id]
        diff: dict[str, bool] = {}
        if event.is_past != flags.is_past:
            diff["is_past"] = flags.is_past
        if event.is_conflict != flags.is_conflict:
            diff["is_conflict"] = flags.is_conflict
        if diff:
            changes[event.id] = diff
    return changes
