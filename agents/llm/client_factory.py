"""Langfuse-instrumented OpenAI client factory."""

from __future__ import annotations

from typing import Optional

from agents.langfuse_utils import create_openai_client
from app.core.config import Settings, get_settings


def get_llm_client(settings: Optional[Settings] = None):
    """Return a Langfuse-instrumented OpenAI client configured from settings, or ``None``."""
    settings = settings or get_settings()
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    return create_openai_client(api_key, timeout=settings.llm_timeout_seconds)
