"""Domain models for the life planner."""

from __future__ import annotations

import uuid
from datetime import date
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


class Category(StrEnum):
    HEALTH = "HEALTH"
    FINANCE = "FINANCE"
    HOME = "HOME"
    WORK = "WORK"
    SOCIAL = "SOCIAL"
    TRAVEL = "TRAVEL"
    RENEWAL = "RENEWAL"
    OTHER = "OTHER"


class SourceType(StrEnum):
    FILE = "file"
    TEXT = "text"


class Frequency(StrEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class IssueType(StrEnum):
    CONFLICT = "CONFLICT"


class ResolutionAction(StrEnum):
    DELETE = "DELETE"
    RESCHEDULE = "RESCHEDULE"
    NONE = "NONE"


class PlanStatus(StrEnum):
    NOTHING_TO_RESOLVE = "nothing_to_resolve"
    PENDING = "pending"
    COMPLETE = "complete"


class IntakeOutcome(StrEnum):
    ADDED = "added"
    ARCHIVED = "archived"
    NO_EVENTS = "no_events"


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Raw extraction payload
# ---------------------------------------------------------------------------


class RawRecurrence(BaseModel):
    model_config = ConfigDict(extra="ignore")

    frequency: str | None = None
    interval: float | None = None
    until: str | None = None
    count: float | None = None


class RawCandidate(BaseModel):
    """A candidate event as returned by the extraction model.

    Every field is optional and may hold blanks or the literal ``"null"``;
    nothing here is trusted until it has been through the normalizer.
    """

    model_config = ConfigDict(extra="ignore")

    is_event: bool | None = True
    is_renewal: bool | None = False
    # Models sometimes emit bare numbers for text fields (e.g. an ISO 4217
    # numeric currency code); those are accepted and stringified later.
    title: str | int | float | None = None
    date: str | int | float | None = None
    start_time: str | None = None
    end_time: str | None = None
    expiration_date: str | int | float | None = None
    amount: str | int | float | None = None
    currency: str | int | float | None = None
    description: str | int | float | None = None
    category: str | None = None
    recurrence: RawRecurrence | None = None


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class RecurrenceRule(BaseModel):
    # Kept as a plain string: an unrecognised frequency stops expansion
    # instead of failing validation.
    frequency: str
    interval: int = 1
    until: str | None = None
    count: int | None = None


class EventDraft(BaseModel):
    """A normalized event that has not been stored yet."""

    title: str = ""
    description: str = ""
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    category: Category = Category.OTHER
    amount: str | None = None
    currency: str | None = None
    is_renewal: bool = False
    expiry_date: str | None = None
    recurrence: RecurrenceRule | None = None
    group_id: str | None = None
    series_index: int | None = None
    series_total: int | None = None


class Event(EventDraft):
    id: str = Field(default_factory=_new_id)
    source_type: SourceType = SourceType.TEXT
    is_conflict: bool = False
    is_past: bool = False
    ai_suggestion: str | None = None

    @field_validator("date")
    @classmethod
    def _date_is_calendar_date(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError(f"date must be YYYY-MM-DD, got {value!r}") from exc
        return value


class ConflictResolution(BaseModel):
    event_id: str
    issue_type: IssueType = IssueType.CONFLICT
    message: str
    action: ResolutionAction = ResolutionAction.RESCHEDULE
    new_date: str | None = None
    new_start_time: str | None = None
    new_end_time: str | None = None


class ResolutionPlan(BaseModel):
    status: PlanStatus
    items: list[ConflictResolution] = Field(default_factory=list)


class EventViews(BaseModel):
    filtered: list[Event] = Field(default_factory=list)
    ordered: list[Event] = Field(default_factory=list)
    display: list[Event] = Field(default_factory=list)


class IntakeResult(BaseModel):
    outcome: IntakeOutcome
    message: str | None = None
    events: list[Event] = Field(default_factory=list)


class UserProfile(BaseModel):
    display_name: str = "John Doe"


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


CategoryFilter = Union[Category, Literal["ALL"]]


class AnalyzeTextRequest(BaseModel):
    text: str = Field(min_length=1)


class AnalyzeBinaryRequest(BaseModel):
    data: str = Field(min_length=1, description="Base64 encoded payload")
    mime_type: str


class EventUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    category: Category | None = None
    amount: str | None = None
    currency: str | None = None


class ApplyResolutionRequest(BaseModel):
    action: ResolutionAction | None = None
    date: str | None = None
