"""Service for expanding a recurring event draft into a dated series."""

from __future__ import annotations

import logging
import uuid
from datetime import date

from dateutil.relativedelta import relativedelta

from lifeplanner.domain.models import EventDraft, Frequency
from lifeplanner.services.normalizer import parse_date

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 20
DEFAULT_HORIZON = relativedelta(months=3)

_STEPS = {
    Frequency.DAILY.value: lambda n: relativedelta(days=n),
    Frequency.WEEKLY.value: lambda n: relativedelta(weeks=n),
    Frequency.MONTHLY.value: lambda n: relativedelta(months=n),
    Frequency.YEARLY.value: lambda n: relativedelta(years=n),
}


def expand_recurrence(draft: EventDraft, today: date) -> list[EventDraft]:
    """Expand *draft* into its series of occurrences.

    Without a rule, or with an unparseable base date, the draft is returned
    on its own. Otherwise occurrences start at the draft's date and advance
    by ``interval`` calendar units until either ``until`` is passed or
    ``count`` occurrences exist. Every occurrence shares a new ``group_id``
    and carries its 1-based ``series_index`` and the final ``series_total``.

    An unknown frequency, or a step past the last representable date, stops
    the series with what was emitted so far.
    """
    rule = draft.recurrence
    if rule is None:
        return [draft]

    current = parse_date(draft.date, today)
    if current is None:
        logger.warning("Cannot expand %r: unparseable date %r", draft.title, draft.date)
        return [draft]

    until = parse_date(rule.until, today) or today + DEFAULT_HORIZON
    count = rule.count if rule.count and rule.count > 0 else DEFAULT_COUNT
    interval = max(rule.interval, 1)
    step = _STEPS.get(rule.frequency.upper())

    group_id = str(uuid.uuid4())
    series: list[EventDraft] = []

    while current <= until and len(series) < count:
        series.append(
            draft.model_copy(
                update={
                    "date": current.isoformat(),
                    "group_id": group_id,
                    "series_index": len(series) + 1,
                }
            )
        )
        if step is None:
            logger.warning("Unknown recurrence frequency %r", rule.frequency)
            break
        # Each step starts from the previous occurrence, so a month-end
        # clamp carries forward (Jan 31 -> Feb 28 -> Mar 28).
        try:
            current = current + step(interval)
        except (OverflowError, ValueError):
            logger.warning("Recurrence of %r stepped out of date range", draft.title)
            break

    if not series:
        return [draft]

    total = len(series)
    return [item.model_copy(update={"series_total": total}) for item in series]
