"""Application configuration loaded from environment via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the analysis engine and its collaborators."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field("INFO", alias="LOG_LEVEL")
    analysis_mode: Literal["auto", "local"] = Field("auto", alias="ANALYSIS_MODE")

    openai_api_key: Optional[SecretStr] = Field(None, alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")
    llm_temperature: float = Field(0.3, alias="LLM_TEMPERATURE", ge=0.0, le=2.0)
    llm_max_output_tokens: int = Field(1500, alias="LLM_MAX_OUTPUT_TOKENS", gt=0)
    llm_timeout_seconds: float = Field(30.0, alias="LLM_TIMEOUT_SECONDS", gt=0)

    alpha_vantage_api_key: Optional[SecretStr] = Field(None, alias="ALPHA_VANTAGE_API_KEY")
    alpha_vantage_base_url: HttpUrl = Field("https://www.alphavantage.co/query", alias="ALPHA_VANTAGE_BASE_URL")
    market_data_timeout_seconds: float = Field(10.0, alias="MARKET_DATA_TIMEOUT_SECONDS", gt=0)

    @field_validator("openai_api_key", "alpha_vantage_api_key", mode="before")
    @classmethod
    def _blank_secret_is_missing(cls, value: Optional[str | SecretStr]) -> Optional[str | SecretStr]:
        """Treat empty strings from .env files as an absent credential."""
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value

    @property
    def remote_analysis_enabled(self) -> bool:
        return self.analysis_mode == "auto" and self.openai_api_key is not None


@lru_cache(1)
def get_settings() -> Settings:
    """Return cached Settings instance."""

    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
