"""Service for projecting the stored events into display lists."""

from __future__ import annotations

from datetime import date

from lifeplanner.domain.models import CategoryFilter, Event, EventViews


def filter_events(
    events: list[Event],
    category: CategoryFilter,
    selected_date: str | None,
    today: date,
) -> list[Event]:
    """Keep events in *category* that belong to the requested day range.

    With a selected date only that exact day is kept, past or not. Without
    one, today and later are kept along with undated events.
    """
    today_str = today.isoformat()

    def _keep(event: Event) -> bool:
        if category != "ALL" and event.category != category:
            return False
        if selected_date:
            return event.date == selected_date
        return event.date is None or event.date >= today_str

    return [e for e in events if _keep(e)]


def sort_events(events: list[Event]) -> list[Event]:
    """Ascending by date with undated events last; ties keep arrival order."""
    return sorted(events, key=lambda e: (e.date is None, e.date or ""))


def collapse_series(events: list[Event]) -> list[Event]:
    """Keep the first occurrence of each recurring group."""
    seen_groups: set[str] = set()
    collapsed: list[Event] = []
    for event in events:
        if event.group_id is not None:
            if event.group_id in seen_groups:
                continue
            seen_groups.add(event.group_id)
        collapsed.append(event)
    return collapsed


def project_views(
    events: list[Event],
    category: CategoryFilter = "ALL",
    selected_date: str | None = None,
    *,
    today: date,
) -> EventViews:
    filtered = filter_events(events, category, selected_date, today)
    ordered = sort_events(filtered)
    display = ordered if selected_date else collapse_series(ordered)
    return EventViews(filtered=filtered, ordered=ordered, display=display)
