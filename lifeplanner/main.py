"""FastAPI application — entry point for the life planner service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Response
from pydantic import ValidationError

from lifeplanner.config import Settings, configure_logging
from lifeplanner.domain.models import (
    AnalyzeBinaryRequest,
    AnalyzeTextRequest,
    ApplyResolutionRequest,
    Category,
    CategoryFilter,
    Event,
    EventUpdate,
    EventViews,
    IntakeResult,
    RawCandidate,
    ResolutionPlan,
    SourceType,
    UserProfile,
)
from lifeplanner.repos.memory import EventStore
from lifeplanner.services.extraction import (
    ExtractionError,
    analyze_document,
    analyze_text,
    transcribe_audio,
)
from lifeplanner.services.intake import ingest_candidates
from lifeplanner.services.normalizer import normalize_update
from lifeplanner.services.resolution import (
    ConflictResolutionPlanner,
    ResolutionNotFound,
)
from lifeplanner.services.views import project_views

settings = Settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Life Planner")

# ── Process-wide state, created once at import and shared by the routes ──
event_store = EventStore()
planner = ConflictResolutionPlanner(event_store)
user_profile = UserProfile()


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=exc.errors(include_url=False, include_context=False),
    )


def _category_filter(raw: str) -> CategoryFilter:
    if raw == "ALL":
        return "ALL"
    try:
        return Category(raw)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown category {raw!r}")


# ── Analysis ──────────────────────────────────────────────────────────


@app.post("/analyze/text", response_model=IntakeResult)
def analyze_text_route(payload: AnalyzeTextRequest) -> IntakeResult:
    """Extract events from free text and store them."""
    try:
        candidates = analyze_text(payload.text, event_store.today(), settings)
    except ExtractionError:
        logger.exception("Text analysis failed")
        raise HTTPException(status_code=502, detail="Failed to analyze text.")
    return ingest_candidates(candidates, SourceType.TEXT, event_store)


@app.post("/analyze/document", response_model=IntakeResult)
def analyze_document_route(payload: AnalyzeBinaryRequest) -> IntakeResult:
    """Extract events from a base64 encoded image or document."""
    try:
        candidates = analyze_document(
            payload.data, payload.mime_type, event_store.today(), settings
        )
    except ExtractionError:
        logger.exception("Document analysis failed")
        raise HTTPException(status_code=502, detail="Failed to analyze file.")
    return ingest_candidates(candidates, SourceType.FILE, event_store)


@app.post("/analyze/audio", response_model=IntakeResult)
def analyze_audio_route(payload: AnalyzeBinaryRequest) -> IntakeResult:
    """Transcribe a voice note, then handle it like typed text."""
    try:
        text = transcribe_audio(payload.data, payload.mime_type, settings)
        candidates = analyze_text(text, event_store.today(), settings) if text else []
    except ExtractionError:
        logger.exception("Audio analysis failed")
        raise HTTPException(status_code=502, detail="Failed to analyze text.")
    return ingest_candidates(candidates, SourceType.TEXT, event_store)


# ── Events ────────────────────────────────────────────────────────────


@app.post("/events", response_model=IntakeResult)
def add_event(candidate: RawCandidate) -> IntakeResult:
    """Manually add an event; it goes through the same normalization."""
    return ingest_candidates([candidate], SourceType.TEXT, event_store)


@app.get("/events", response_model=EventViews)
def list_events(
    category: str = "ALL", selected_date: str | None = None
) -> EventViews:
    """Return the filtered, ordered and display views of the events."""
    category_filter = _category_filter(category)
    event_store.recompute_issues()
    return project_views(
        event_store.list_all(),
        category_filter,
        selected_date,
        today=event_store.today(),
    )


@app.get("/events/all", response_model=list[Event])
def list_all_events() -> list[Event]:
    """Return every stored event, newest first."""
    return event_store.list_all()


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    event = event_store.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@app.patch("/events/{event_id}", response_model=Event | None)
def update_event(event_id: str, body: EventUpdate) -> Event | None:
    """Edit an event. Unknown ids are ignored and return null."""
    try:
        changes = normalize_update(body.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    try:
        return event_store.update(event_id, changes)
    except ValidationError as exc:
        raise _validation_error(exc)


@app.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: str) -> Response:
    event_store.delete(event_id)
    return Response(status_code=204)


# ── Conflict resolution ───────────────────────────────────────────────


@app.post("/resolutions/audit", response_model=ResolutionPlan)
def audit_schedule() -> ResolutionPlan:
    """Plan a fix for every conflicting event."""
    return planner.audit()


@app.get("/resolutions", response_model=ResolutionPlan)
def current_plan() -> ResolutionPlan:
    return planner.plan


@app.post("/resolutions/{event_id}/apply", response_model=ResolutionPlan)
def apply_resolution(event_id: str, body: ApplyResolutionRequest) -> ResolutionPlan:
    try:
        return planner.apply(event_id, action=body.action, override_date=body.date)
    except ResolutionNotFound:
        raise HTTPException(status_code=404, detail="No pending resolution for event")
    except ValidationError as exc:
        raise _validation_error(exc)


# ── Profile ───────────────────────────────────────────────────────────


@app.get("/profile", response_model=UserProfile)
def get_profile() -> UserProfile:
    return user_profile


@app.put("/profile", response_model=UserProfile)
def update_profile(body: UserProfile) -> UserProfile:
    user_profile.display_name = body.display_name
    return user_profile
