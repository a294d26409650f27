"""Deterministic scoring core: answer normalization, timeframe scoring, aggregation."""

from .aggregation_engine import AggregationEngine, Verdict
from .answer_normalizer import AnswerNormalizer, Contribution
from .config import (
    DEFAULT_AGGREGATION_CONFIG,
    DEFAULT_SCORING_CONFIG,
    AggregationConfig,
    ScoringConfig,
)
from .timeframe_scorer import TimeframeScorer

__all__ = [
    "AggregationConfig",
    "AggregationEngine",
    "AnswerNormalizer",
    "Contribution",
    "DEFAULT_AGGREGATION_CONFIG",
    "DEFAULT_SCORING_CONFIG",
    "ScoringConfig",
    "TimeframeScorer",
    "Verdict",
]
