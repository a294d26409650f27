"""Combine per-timeframe scores into a single banded trade verdict."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Sequence

from app.core.logging import get_logger
from schemas.market_snapshot import MarketSnapshot
from schemas.tda import TimeframeResult
from trading_core.config import DEFAULT_AGGREGATION_CONFIG, AggregationConfig

LOG = get_logger(__name__)


@dataclass(frozen=True)
class Verdict:
    overall_probability: float
    trade_recommendation: str
    confidence_level: float
    risk_level: str
    risk_reward_ratio: float
    reference_timeframe: Optional[str] = None
    market_alignment: Optional[float] = None


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


class AggregationEngine:
    """Weighted aggregation, threshold banding and market adjustment.

    A pure function of its arguments and the injected ``AggregationConfig``.
    """

    def __init__(self, config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG) -> None:
        self.config = config

    def reference_timeframe(self, selected: Sequence[str]) -> Optional[str]:
        """Highest-weighted selected timeframe; earliest selection wins ties."""

        best: Optional[str] = None
        best_weight = float("-inf")
        for timeframe in selected:
            weight = self.config.weight(timeframe)
            if weight > best_weight:
                best, best_weight = timeframe, weight
        return best

    def overall_probability(self, results: Mapping[str, TimeframeResult], selected: Sequence[str]) -> float:
        cfg = self.config
        weighted_sum = 0.0
        total_weight = 0.0
        for timeframe in selected:
            result = results.get(timeframe)
            score = result.probability if result is not None else cfg.neutral_probability
            weight = cfg.weight(timeframe)
            weighted_sum += weight * score
            total_weight += weight
        if total_weight == 0:
            return cfg.neutral_probability
        return round(weighted_sum / total_weight, 2)

    def aggregate(self, results: Mapping[str, TimeframeResult], selected: Sequence[str]) -> Verdict:
        cfg = self.config
        probability = self.overall_probability(results, selected)
        reference = self.reference_timeframe(selected)
        reference_result = results.get(reference) if reference else None
        direction = "LONG" if reference_result is not None and reference_result.sentiment == "BULLISH" else "SHORT"

        if probability >= cfg.strong_band:
            recommendation = direction
            confidence = min(cfg.strong_confidence_cap, probability + cfg.strong_confidence_bonus)
            risk = "LOW"
        elif probability >= cfg.directional_band:
            recommendation = direction
            confidence = probability
            risk = "MEDIUM"
        elif probability >= cfg.neutral_band:
            recommendation = "NEUTRAL"
            confidence = probability
            risk = "MEDIUM"
        else:
            recommendation = "AVOID"
            confidence = 100 - probability
            risk = "HIGH"

        return Verdict(
            overall_probability=probability,
            trade_recommendation=recommendation,
            confidence_level=_clamp(confidence),
            risk_level=risk,
            risk_reward_ratio=cfg.risk_reward_for(risk),
            reference_timeframe=reference,
        )

    def market_alignment(self, results: Sequence[TimeframeResult], snapshot: MarketSnapshot) -> float:
        """Agreement between the majority timeframe sentiment and the market trend."""

        if snapshot.trend is None or not results:
            return 0.5
        total = len(results)
        bullish = sum(1 for result in results if result.sentiment == "BULLISH")
        bearish = sum(1 for result in results if result.sentiment == "BEARISH")
        if bullish == bearish:
            return 0.5
        agreeing = bullish if snapshot.trend == "BULLISH" else bearish
        return agreeing / total

    def adjust_for_market(
        self,
        verdict: Verdict,
        results: Sequence[TimeframeResult],
        snapshot: Optional[MarketSnapshot],
    ) -> Verdict:
        """Apply trend alignment and volatility adjustments.

        The recommendation band is not recomputed after the probability moves.
        """

        if snapshot is None:
            return verdict
        cfg = self.config
        probability = verdict.overall_probability
        confidence = verdict.confidence_level
        risk = verdict.risk_level

        alignment = self.market_alignment(results, snapshot)
        if alignment >= cfg.strong_alignment:
            probability = min(100.0, probability + cfg.alignment_shift)
        elif alignment <= cfg.weak_alignment:
            probability = max(0.0, probability - cfg.alignment_shift)

        volatility = snapshot.volatility
        if volatility is not None:
            if volatility > cfg.high_volatility:
                confidence = max(0.0, confidence - cfg.high_volatility_penalty)
                risk = "HIGH"
            elif volatility < cfg.low_volatility:
                confidence = min(100.0, confidence + cfg.low_volatility_bonus)
                risk = "LOW"

        LOG.debug(
            "market adjustment applied",
            alignment=alignment,
            volatility=volatility,
            probability_before=verdict.overall_probability,
            probability_after=probability,
            risk=risk,
        )
        return replace(
            verdict,
            overall_probability=round(_clamp(probability), 2),
            confidence_level=_clamp(confidence),
            risk_level=risk,
            risk_reward_ratio=cfg.risk_reward_for(risk),
            market_alignment=alignment,
        )

    def evaluate(
        self,
        results: Mapping[str, TimeframeResult],
        selected: Sequence[str],
        snapshot: Optional[MarketSnapshot] = None,
    ) -> Verdict:
        verdict = self.aggregate(results, selected)
        selected_results = [results[timeframe] for timeframe in selected if timeframe in results]
        return self.adjust_for_market(verdict, selected_results, snapshot)


__all__ = ["Verdict", "AggregationEngine"]
