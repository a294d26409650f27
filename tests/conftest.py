from __future__ import annotations

import pytest

from app.core.config import get_settings

_ENV_KEYS = (
    "OPENAI_API_KEY",
    "ALPHA_VANTAGE_API_KEY",
    "ANALYSIS_MODE",
    "LOG_LEVEL",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_PUBLIC_KEY",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep developer credentials and .env files out of every test."""

    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
