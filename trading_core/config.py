"""Immutable scoring tables injected into the normalizer and aggregation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ScoringConfig:
    """Per-answer magnitudes, label sets and keyword sets."""

    choice_magnitude: float = 15.0
    sideways_magnitude: float = -5.0
    rating_magnitude: float = 10.0
    flag_magnitude: float = 8.0
    text_magnitude: float = 5.0

    rating_high_fraction: float = 0.8
    rating_low_fraction: float = 0.4

    bullish_labels: frozenset[str] = frozenset({"bullish", "long"})
    bearish_labels: frozenset[str] = frozenset({"bearish", "short"})
    neutral_labels: frozenset[str] = frozenset({"sideways", "neutral"})

    bullish_keywords: tuple[str, ...] = ("bullish", "strong", "support")
    bearish_keywords: tuple[str, ...] = ("bearish", "weak", "resistance")
    text_excerpt_chars: int = 50

    base_score: float = 50.0
    bullish_score_floor: float = 55.0
    bearish_score_ceiling: float = 45.0


@dataclass(frozen=True)
class AggregationConfig:
    """Timeframe weighting, recommendation bands and market adjustment thresholds."""

    timeframe_weights: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {
                "DAILY": 0.40,
                "W1": 0.25,
                "MN1": 0.25,
                "H4": 0.20,
                "H8": 0.20,
                "H2": 0.15,
                "H1": 0.10,
                "M30": 0.05,
                "M15": 0.05,
                "M10": 0.05,
            }
        )
    )
    fallback_weight: float = 0.1
    neutral_probability: float = 50.0

    strong_band: float = 75.0
    directional_band: float = 60.0
    neutral_band: float = 45.0
    strong_confidence_bonus: float = 10.0
    strong_confidence_cap: float = 95.0

    risk_reward: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"LOW": 1.5, "MEDIUM": 2.0, "HIGH": 3.0})
    )
    default_risk_reward: float = 1.0

    strong_alignment: float = 0.7
    weak_alignment: float = 0.3
    alignment_shift: float = 10.0

    high_volatility: float = 2.0
    low_volatility: float = 0.5
    high_volatility_penalty: float = 15.0
    low_volatility_bonus: float = 10.0

    def weight(self, timeframe: str) -> float:
        return self.timeframe_weights.get(timeframe, self.fallback_weight)

    def risk_reward_for(self, risk_level: str) -> float:
        return self.risk_reward.get(risk_level, self.default_risk_reward)


DEFAULT_SCORING_CONFIG = ScoringConfig()
DEFAULT_AGGREGATION_CONFIG = AggregationConfig()


__all__ = [
    "ScoringConfig",
    "AggregationConfig",
    "DEFAULT_SCORING_CONFIG",
    "DEFAULT_AGGREGATION_CONFIG",
]
