"""Schemas package for typed models used across the engine."""

from .market_snapshot import MarketSnapshot, MarketTrend
from .tda import (
    TIMEFRAMES,
    AnalysisRequest,
    AnalysisResult,
    Answer,
    AnswerValue,
    ChoiceValue,
    FlagValue,
    Question,
    RatingValue,
    TextValue,
    TimeframeResult,
    UnrecognizedValue,
)

__all__ = [
    "TIMEFRAMES",
    "AnalysisRequest",
    "AnalysisResult",
    "Answer",
    "AnswerValue",
    "ChoiceValue",
    "FlagValue",
    "MarketSnapshot",
    "MarketTrend",
    "Question",
    "RatingValue",
    "TextValue",
    "TimeframeResult",
    "UnrecognizedValue",
]
