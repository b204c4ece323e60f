"""Tests for the candidate normalization service."""

from __future__ import annotations

from datetime import date

import pytest

from lifeplanner.domain.models import Category, RawCandidate, RawRecurrence
from lifeplanner.services.normalizer import (
    clean_string,
    normalize_candidate,
    normalize_time,
    normalize_update,
)

# Fixed reference day: Wednesday 2025-01-01
TODAY = date(2025, 1, 1)


# ---------------------------------------------------------------------------
# clean_string
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("value", [None, "", "   ", "null", "NULL", " Null "])
def test_clean_string_drops_empty_values(value):
    assert clean_string(value) is None


def test_clean_string_keeps_text_and_coerces_numbers():
    assert clean_string("EUR") == "EUR"
    assert clean_string(42) == "42"
    assert clean_string(12.5) == "12.5"
    assert clean_string(True) is None


# ---------------------------------------------------------------------------
# normalize_candidate
# ---------------------------------------------------------------------------


def test_optional_fields_never_hold_null_or_blank():
    raw = RawCandidate(
        title="Pay rent",
        date="2025-02-01",
        amount="null",
        currency="   ",
        start_time="NULL",
        end_time="",
        expiration_date="null",
        category="FINANCE",
    )
    draft = normalize_candidate(raw, TODAY)

    assert draft.amount is None
    assert draft.currency is None
    assert draft.start_time is None
    assert draft.end_time is None
    assert draft.expiry_date is None
    assert draft.date == "2025-02-01"
    assert draft.category == Category.FINANCE


def test_missing_title_and_description_default_to_empty():
    draft = normalize_candidate(RawCandidate(date="2025-02-01"), TODAY)
    assert draft.title == ""
    assert draft.description == ""


def test_missing_date_defaults_to_today():
    draft = normalize_candidate(RawCandidate(title="Call mom", date="null"), TODAY)
    assert draft.date == "2025-01-01"


def test_unparseable_date_defaults_to_today():
    """Malformed dates degrade to today instead of raising."""
    draft = normalize_candidate(RawCandidate(title="Call mom", date="not-a-date"), TODAY)
    assert draft.date == "2025-01-01"


def test_lenient_date_is_canonicalized():
    draft = normalize_candidate(RawCandidate(title="Trip", date="June 30, 2025"), TODAY)
    assert draft.date == "2025-06-30"


def test_renewal_reminder_is_thirty_days_before_expiry():
    raw = RawCandidate(
        title="Car insurance",
        is_renewal=True,
        expiration_date="2025-06-30",
        category="RENEWAL",
    )
    draft = normalize_candidate(raw, TODAY)

    assert draft.date == "2025-05-31"
    assert draft.expiry_date == "2025-06-30"
    assert draft.is_renewal is True


def test_renewal_with_single_date_treats_it_as_expiry():
    raw = RawCandidate(title="Phone warranty", is_renewal=True, date="2025-06-30")
    draft = normalize_candidate(raw, TODAY)

    assert draft.expiry_date == "2025-06-30"
    assert draft.date == "2025-05-31"


def test_renewal_with_unparseable_expiry_keeps_date():
    """Deliberate fallback: a bad expiry leaves the date untouched."""
    raw = RawCandidate(
        title="Gym membership",
        is_renewal=True,
        date="2025-03-10",
        expiration_date="not-a-date",
    )
    draft = normalize_candidate(raw, TODAY)

    assert draft.date == "2025-03-10"
    assert draft.expiry_date == "not-a-date"


def test_non_renewal_ignores_expiry_for_date():
    raw = RawCandidate(title="Lease", date="2025-03-10", expiration_date="2025-12-31")
    draft = normalize_candidate(raw, TODAY)

    assert draft.date == "2025-03-10"
    assert draft.is_renewal is False


def test_times_are_zero_padded():
    raw = RawCandidate(title="Dentist", date="2025-02-01", start_time="9:05", end_time="10:30")
    draft = normalize_candidate(raw, TODAY)

    assert draft.start_time == "09:05"
    assert draft.end_time == "10:30"


def test_normalize_time_drops_garbage():
    assert normalize_time("9am") == "09:00"
    assert normalize_time("sometime") is None


def test_unknown_category_falls_back_to_other():
    draft = normalize_candidate(RawCandidate(title="?", category="HOBBY"), TODAY)
    assert draft.category == Category.OTHER


def test_recurrence_is_cleaned():
    raw = RawCandidate(
        title="Pills",
        date="2025-01-05",
        recurrence=RawRecurrence(frequency="weekly", interval=0, until="null"),
    )
    draft = normalize_candidate(raw, TODAY)

    assert draft.recurrence is not None
    assert draft.recurrence.frequency == "WEEKLY"
    assert draft.recurrence.interval == 1
    assert draft.recurrence.until is None
    assert draft.recurrence.count is None


def test_recurrence_without_frequency_is_dropped():
    raw = RawCandidate(title="Pills", recurrence=RawRecurrence(interval=2))
    assert normalize_candidate(raw, TODAY).recurrence is None


def test_renewal_reminder_before_first_representable_date_keeps_date():
    raw = RawCandidate(title="Ancient deed", is_renewal=True, expiration_date="0001-01-15")
    draft = normalize_candidate(raw, TODAY)

    assert draft.date == "2025-01-01"
    assert draft.expiry_date == "0001-01-15"


def test_numeric_text_fields_are_stringified():
    raw = RawCandidate(title=2025, description=7, currency=978, amount=12.5)
    draft = normalize_candidate(raw, TODAY)

    assert draft.title == "2025"
    assert draft.description == "7"
    assert draft.currency == "978"
    assert draft.amount == "12.5"


# ---------------------------------------------------------------------------
# normalize_update
# ---------------------------------------------------------------------------


def test_update_values_are_cleaned():
    changes = normalize_update(
        {"title": "Dentist", "start_time": "9:05", "end_time": "null", "currency": " "}
    )

    assert changes == {
        "title": "Dentist",
        "start_time": "09:05",
        "end_time": None,
        "currency": None,
    }


def test_update_with_unparseable_time_raises():
    with pytest.raises(ValueError):
        normalize_update({"end_time": "after lunch"})
