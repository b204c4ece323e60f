"""Tests for the in-memory event store."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from lifeplanner.domain.models import EventDraft, SourceType
from lifeplanner.repos.memory import EventStore

TODAY = date(2025, 1, 1)


@pytest.fixture()
def store() -> EventStore:
    return EventStore(clock=lambda: TODAY)


def _draft(**overrides) -> EventDraft:
    defaults = dict(title="Test event", date="2025-01-10")
    defaults.update(overrides)
    return EventDraft(**defaults)


def test_insert_prepends_newest_first(store):
    [first] = store.insert([_draft(title="first")])
    [second] = store.insert([_draft(title="second")])

    assert [e.id for e in store.list_all()] == [second.id, first.id]


def test_insert_assigns_ids_and_source(store):
    events = store.insert([_draft(), _draft()], source_type=SourceType.FILE)

    assert len({e.id for e in events}) == 2
    assert all(e.source_type == SourceType.FILE for e in events)


def test_reinserting_a_stored_event_creates_a_new_one(store):
    [original] = store.insert([_draft(title="Dentist")])

    [copy] = store.insert([store.get(original.id)], source_type=SourceType.FILE)

    assert copy.id != original.id
    assert copy.title == "Dentist"
    assert copy.source_type == SourceType.FILE
    assert len({e.id for e in store.list_all()}) == 2
    store.delete(copy.id)
    assert store.get(original.id) is not None


def test_insert_keeps_batch_order(store):
    events = store.insert([_draft(title="a"), _draft(title="b")])
    assert [e.title for e in events] == ["a", "b"]
    assert [e.title for e in store.list_all()] == ["a", "b"]


def test_insert_recomputes_flags(store):
    a, b = store.insert(
        [
            _draft(start_time="09:00", end_time="10:00"),
            _draft(start_time="09:30", end_time="11:00"),
        ]
    )
    assert a.is_conflict and b.is_conflict

    [old] = store.insert([_draft(date="2024-12-01")])
    assert old.is_past


def test_update_merges_and_clears_conflict(store):
    a, b = store.insert(
        [
            _draft(start_time="09:00", end_time="10:00"),
            _draft(start_time="09:30", end_time="11:00"),
        ]
    )

    updated = store.update(b.id, {"start_time": "10:00"})

    assert updated is not None
    assert updated.start_time == "10:00"
    assert updated.end_time == "11:00"
    assert not store.get(a.id).is_conflict
    assert not store.get(b.id).is_conflict


def test_update_cannot_fake_flags(store):
    a, b = store.insert(
        [
            _draft(start_time="09:00", end_time="10:00"),
            _draft(start_time="09:30", end_time="11:00"),
        ]
    )
    store.update(a.id, {"is_conflict": False})
    assert store.get(a.id).is_conflict


def test_update_unknown_id_is_noop(store):
    store.insert([_draft()])
    before = store.list_all()

    assert store.update("missing", {"title": "x"}) is None
    assert store.list_all() == before


def test_update_with_invalid_date_raises_and_leaves_store(store):
    [event] = store.insert([_draft()])

    with pytest.raises(ValidationError):
        store.update(event.id, {"date": "next-ish"})

    assert store.get(event.id).date == "2025-01-10"


def test_delete_removes_and_recomputes(store):
    a, b = store.insert(
        [
            _draft(start_time="09:00", end_time="10:00"),
            _draft(start_time="09:30", end_time="11:00"),
        ]
    )
    store.delete(a.id)

    assert store.get(a.id) is None
    assert not store.get(b.id).is_conflict


def test_delete_unknown_id_is_noop(store):
    store.insert([_draft()])
    before = store.list_all()

    store.delete("missing")

    assert store.list_all() == before


def test_recompute_after_day_rollover():
    current = {"today": date(2025, 1, 9)}
    store = EventStore(clock=lambda: current["today"])
    [event] = store.insert([_draft(date="2025-01-10")])
    assert not event.is_past

    current["today"] = date(2025, 1, 11)
    store.recompute_issues()

    assert store.get(event.id).is_past
