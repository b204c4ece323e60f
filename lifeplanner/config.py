"""Runtime settings and logging setup."""

from __future__ import annotations

import logging
import sys

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Application settings read from ``LIFEPLANNER_*`` environment variables.

    The OpenAI key also answers to the SDK's own ``OPENAI_API_KEY``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIFEPLANNER_",
        populate_by_name=True,
        extra="ignore",
    )

    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LIFEPLANNER_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    extraction_model: str = "gpt-4o-mini"
    transcription_model: str = "whisper-1"
    log_level: str = "INFO"


def configure_logging(level: str = "INFO") -> None:
    """Send application logs to stdout with a timestamped format."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(getattr(h, "_lifeplanner", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._lifeplanner = True
        root_logger.addHandler(handler)

    # The OpenAI client logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
