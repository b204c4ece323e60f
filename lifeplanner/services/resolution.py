"""Service for planning and applying fixes to conflicting events."""

from __future__ import annotations

import logging
import threading
from datetime import date, timedelta

from lifeplanner.domain.models import (
    ConflictResolution,
    Event,
    IssueType,
    PlanStatus,
    ResolutionAction,
    ResolutionPlan,
)
from lifeplanner.repos.memory import EventStore

logger = logging.getLogger(__name__)


class ResolutionNotFound(LookupError):
    """Raised when applying a resolution that is not pending."""


def suggest_resolution(event: Event, today: date) -> ConflictResolution:
    """Suggest moving *event* to the following day, keeping its times.

    The new slot is not checked for conflicts of its own.
    """
    base = date.fromisoformat(event.date) if event.date else today
    return ConflictResolution(
        event_id=event.id,
        issue_type=IssueType.CONFLICT,
        message="Time overlap detected.",
        action=ResolutionAction.RESCHEDULE,
        new_date=(base + timedelta(days=1)).isoformat(),
        new_start_time=event.start_time,
        new_end_time=event.end_time,
    )


class ConflictResolutionPlanner:
    """Holds the pending conflict fixes for the current audit session."""

    def __init__(self, store: EventStore) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._pending: list[ConflictResolution] = []
        self._status = PlanStatus.NOTHING_TO_RESOLVE

    @property
    def plan(self) -> ResolutionPlan:
        with self._lock:
            return ResolutionPlan(status=self._status, items=list(self._pending))

    def audit(self) -> ResolutionPlan:
        """Start a session with one suggestion per conflicting event."""
        today = self._store.today()
        conflicting = [e for e in self._store.list_all() if e.is_conflict]
        with self._lock:
            if not conflicting:
                self._pending = []
                self._status = PlanStatus.NOTHING_TO_RESOLVE
            else:
                self._pending = [suggest_resolution(e, today) for e in conflicting]
                self._status = PlanStatus.PENDING
            logger.info(
                "Audit found %d conflicting events", len(self._pending)
            )
            return ResolutionPlan(status=self._status, items=list(self._pending))

    def apply(
        self,
        event_id: str,
        action: ResolutionAction | None = None,
        override_date: str | None = None,
    ) -> ResolutionPlan:
        """Apply the pending resolution for *event_id* and drop it from the plan.

        *action* replaces the suggested action; *override_date* replaces the
        suggested date when rescheduling.
        """
        with self._lock:
            resolution = next(
                (r for r in self._pending if r.event_id == event_id), None
            )
            if resolution is None:
                raise ResolutionNotFound(event_id)

            chosen = action or resolution.action
            if chosen == ResolutionAction.DELETE:
                self._store.delete(event_id)
            elif chosen == ResolutionAction.RESCHEDULE:
                self._store.update(
                    event_id,
                    {
                        "date": override_date or resolution.new_date,
                        "start_time": resolution.new_start_time,
                        "end_time": resolution.new_end_time,
                        "is_conflict": False,
                        "ai_suggestion": None,
                    },
                )
            logger.info("Applied %s to event %s", chosen, event_id)

            self._pending = [r for r in self._pending if r.event_id != event_id]
            if not self._pending:
                self._status = PlanStatus.COMPLETE
            return ResolutionPlan(status=self._status, items=list(self._pending))
