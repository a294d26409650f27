"""Exception hierarchy for the analysis engine.

Only ``InvalidInputError`` ever reaches a caller; the external-service errors
are raised internally and recovered at the strategy or market-data boundary.
"""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base error for the application."""


class InvalidInputError(AppError):
    """Raised when a required top-level request field is missing."""

    def __init__(self, message: str, *, fields: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class ExternalServiceError(AppError):
    """Raised when the generative service or a market-data provider fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, *, payload: Optional[dict] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class MalformedResponseError(AppError):
    """Raised when the generative service returns unusable content."""

    def __init__(self, message: str, *, raw: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw = raw


__all__ = [
    "AppError",
    "InvalidInputError",
    "ExternalServiceError",
    "MalformedResponseError",
]
