"""Service for extracting candidate events from text, documents and audio."""

from __future__ import annotations

import base64
import json
import logging
from datetime import date

from pydantic import ValidationError

from lifeplanner.config import Settings
from lifeplanner.domain.models import RawCandidate

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """The language model could not be reached or returned unusable data."""


_SYSTEM_PROMPT = """\
You are a helpful life planner assistant. Today is {weekday}, {today}.

ALL OUTPUT FIELDS (title, description) MUST BE IN ENGLISH. Translate the \
content first if the user writes in another language.

Extract life events, appointments, deadlines and tasks from the input and \
respond with ONLY a JSON object of the form {{"events": [<event>, ...]}} where \
each event is:

{{
  "is_event": <true if the input describes an event, task, deadline or plan>,
  "is_renewal": <true for contracts, warranties, insurance, subscriptions>,
  "title": "<short clear title>",
  "date": "<YYYY-MM-DD or null>",
  "start_time": "<HH:MM 24h or null>",
  "end_time": "<HH:MM 24h or null>",
  "expiration_date": "<YYYY-MM-DD expiry of a renewal, or null>",
  "amount": "<monetary amount mentioned, or null>",
  "currency": "<currency symbol or code, or null>",
  "description": "<friendly concise description>",
  "category": "<one of HEALTH, FINANCE, HOME, WORK, SOCIAL, TRAVEL, RENEWAL, OTHER>",
  "recurrence": {{
    "frequency": "<DAILY | WEEKLY | MONTHLY | YEARLY>",
    "interval": <1 for every week, 2 for every other week>,
    "until": "<YYYY-MM-DD to stop repeating, or null>",
    "count": <number of occurrences, or null>
  }} or null
}}

Rules:
- For a bill, insurance contract, warranty slip or subscription set \
is_renewal to true, put the expiry date in expiration_date and use the \
RENEWAL category.
- "every sunday", "daily", "weekly" set recurrence. "Pills every sunday" -> \
frequency WEEKLY, interval 1. "Visit Marie until 2025-05-01" -> until \
"2025-05-01".
- A time range such as "9 to 10am" sets start_time and end_time.
- Relative dates such as "tomorrow" are computed from today ({today}).
- For greetings or irrelevant input return {{"events": []}}.
"""

_DOCUMENT_PROMPT = (
    "Analyze this document/image. Extract the main event, deadline, timeframes "
    "or task. Check if it is a warranty or renewal. Translate output to English."
)


def _system_prompt(today: date) -> str:
    return _SYSTEM_PROMPT.format(weekday=today.strftime("%A"), today=today.isoformat())


def _client(settings: Settings):
    from openai import OpenAI

    return OpenAI(api_key=settings.openai_api_key)


def _extract_with_llm(user_content: str | list, today: date, settings: Settings) -> object:
    """Call OpenAI and return the decoded JSON payload."""
    from openai import OpenAIError

    try:
        response = _client(settings).chat.completions.create(
            model=settings.extraction_model,
            messages=[
                {"role": "system", "content": _system_prompt(today)},
                {"role": "user", "content": user_content},
            ],
            temperature=0,
            response_format={"type": "json_object"},
        )
    except OpenAIError as exc:
        raise ExtractionError(f"extraction request failed: {exc}") from exc

    content = response.choices[0].message.content
    if not content:
        raise ExtractionError("No data returned from the extraction model")
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ExtractionError("Extraction model returned invalid JSON") from exc


def coerce_candidates(payload: object) -> list[RawCandidate]:
    """Unify a model payload into a list of candidates.

    Accepts ``{"events": [...]}``, a single event object or a bare list.
    """
    if isinstance(payload, dict) and "events" in payload:
        payload = payload["events"]
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        raise ExtractionError(f"Unexpected extraction payload: {type(payload).__name__}")
    try:
        return [RawCandidate.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ExtractionError("Extraction payload has an invalid shape") from exc


def analyze_text(text: str, today: date, settings: Settings) -> list[RawCandidate]:
    payload = _extract_with_llm(text, today, settings)
    candidates = coerce_candidates(payload)
    logger.info("Extracted %d candidates from text", len(candidates))
    return candidates


def analyze_document(
    data_base64: str, mime_type: str, today: date, settings: Settings
) -> list[RawCandidate]:
    """Extract candidates from a base64 encoded image or document."""
    data_url = f"data:{mime_type};base64,{data_base64}"
    if mime_type.startswith("image/"):
        attachment = {"type": "image_url", "image_url": {"url": data_url}}
    else:
        attachment = {
            "type": "file",
            "file": {"filename": "document", "file_data": data_url},
        }
    content = [attachment, {"type": "text", "text": _DOCUMENT_PROMPT}]

    payload = _extract_with_llm(content, today, settings)
    candidates = coerce_candidates(payload)
    logger.info("Extracted %d candidates from %s document", len(candidates), mime_type)
    return candidates


def transcribe_audio(data_base64: str, mime_type: str, settings: Settings) -> str:
    """Transcribe base64 encoded audio into text."""
    from openai import OpenAIError

    try:
        audio = base64.b64decode(data_base64, validate=True)
    except ValueError as exc:
        raise ExtractionError("Audio payload is not valid base64") from exc

    extension = mime_type.split("/")[-1].split(";")[0] or "webm"
    try:
        transcript = _client(settings).audio.transcriptions.create(
            model=settings.transcription_model,
            file=(f"recording.{extension}", audio, mime_type),
        )
    except OpenAIError as exc:
        raise ExtractionError(f"transcription failed: {exc}") from exc
    return transcript.text or ""
