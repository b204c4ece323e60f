"""Service for turning raw extraction candidates into normalized event drafts."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

import dateparser
from dateutil import parser as dateutil_parser

from lifeplanner.domain.models import (
    Category,
    EventDraft,
    RawCandidate,
    RawRecurrence,
    RecurrenceRule,
)

logger = logging.getLogger(__name__)

RENEWAL_REMINDER_DAYS = 30


def clean_string(value: object) -> str | None:
    """Return *value* as a string, or ``None`` when it carries no information.

    Blank strings and the case-insensitive literal ``"null"`` count as absent.
    Numbers are coerced to their string form; any other type is dropped.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped.lower() == "null":
        return None
    return stripped


def parse_date(raw: str | None, today: date) -> date | None:
    """Parse an ISO date, falling back to lenient parsing. Never raises."""
    if not raw:
        return None
    try:
        return dateutil_parser.isoparse(raw).date()
    except (ValueError, OverflowError):
        pass

    settings = {
        "RELATIVE_BASE": datetime.combine(today, datetime.min.time()),
        "REQUIRE_PARTS": ["day", "month", "year"],
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    result = dateparser.parse(raw, languages=["en"], settings=settings)
    if result is None:
        return None
    return result.date()


def normalize_time(raw: str | None) -> str | None:
    """Return *raw* as zero-padded ``HH:MM`` or ``None`` if it is not a time."""
    if raw is None:
        return None
    try:
        return datetime.strptime(raw, "%H:%M").strftime("%H:%M")
    except ValueError:
        pass
    try:
        parsed = dateutil_parser.parse(raw, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError):
        logger.warning("Dropping unparseable time %r", raw)
        return None
    return parsed.strftime("%H:%M")


def normalize_update(changes: dict) -> dict:
    """Clean a partial edit with the same rules as extracted candidates.

    Blank or ``"null"`` amounts, currencies and times are cleared and times
    are canonicalized. An edit that names a time which cannot be parsed
    raises ``ValueError`` rather than silently clearing the field.
    """
    cleaned = dict(changes)
    for key in ("amount", "currency"):
        if key in cleaned:
            cleaned[key] = clean_string(cleaned[key])
    for key in ("start_time", "end_time"):
        if key not in cleaned:
            continue
        raw = clean_string(cleaned[key])
        value = normalize_time(raw)
        if raw is not None and value is None:
            raise ValueError(f"{key} {raw!r} is not a time of day")
        cleaned[key] = value
    return cleaned


def _reminder_date(expiry: str, today: date) -> str | None:
    expiry_date = parse_date(expiry, today)
    if expiry_date is None:
        logger.warning("Could not compute renewal reminder for expiry %r", expiry)
        return None
    try:
        return (expiry_date - timedelta(days=RENEWAL_REMINDER_DAYS)).isoformat()
    except OverflowError:
        logger.warning("Renewal reminder for expiry %r is out of range", expiry)
        return None


def _text(value: str | int | float | None) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value)


def _normalize_category(raw: str | None) -> Category:
    try:
        return Category(raw)
    except ValueError:
        logger.warning("Unknown category %r, using OTHER", raw)
        return Category.OTHER


def _normalize_recurrence(raw: RawRecurrence | None) -> RecurrenceRule | None:
    if raw is None:
        return None
    frequency = clean_string(raw.frequency)
    if frequency is None:
        return None
    return RecurrenceRule(
        frequency=frequency.upper(),
        interval=int(raw.interval) if raw.interval and raw.interval >= 1 else 1,
        until=clean_string(raw.until),
        count=int(raw.count) if raw.count and raw.count >= 1 else None,
    )


def normalize_candidate(raw: RawCandidate, today: date) -> EventDraft:
    """Clean a raw candidate into an EventDraft.

    Optional fields lose blank and ``"null"`` values. A missing date becomes
    *today*. Renewals are moved to a reminder date ``RENEWAL_REMINDER_DAYS``
    before their expiry; when the expiry cannot be parsed the date is kept
    as it was instead of raising.
    """
    raw_date = clean_string(raw.date)
    parsed = parse_date(raw_date, today)
    if raw_date is not None and parsed is None:
        logger.warning("Unparseable event date %r, defaulting to today", raw_date)
    effective_date = (parsed or today).isoformat()

    is_renewal = raw.is_renewal is True
    expiry_date = clean_string(raw.expiration_date)

    if is_renewal:
        if expiry_date is None and raw_date is not None:
            # Only one date given: it is the expiry.
            expiry_date = raw_date
        if expiry_date is not None:
            effective_date = _reminder_date(expiry_date, today) or effective_date

    return EventDraft(
        title=_text(raw.title),
        description=_text(raw.description),
        category=_normalize_category(raw.category),
        amount=clean_string(raw.amount),
        currency=clean_string(raw.currency),
        date=effective_date,
        start_time=normalize_time(clean_string(raw.start_time)),
        end_time=normalize_time(clean_string(raw.end_time)),
        is_renewal=is_renewal,
        expiry_date=expiry_date,
        recurrence=_normalize_recurrence(raw.recurrence),
    )
