"""Template-driven narrative fields and final result assembly for the local path."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from schemas.market_snapshot import MarketSnapshot
from schemas.tda import AnalysisResult, AnalysisSource, TimeframeResult
from trading_core.aggregation_engine import Verdict

ENTRY_SCORE_FLOOR = 60.0

POSITION_SIZING = {
    "LOW": "Position sizing: risk 1% of account equity on this setup.",
    "MEDIUM": "Position sizing: risk 0.5% of account equity on this setup.",
    "HIGH": "Position sizing: risk 0.2% of account equity on this setup.",
}

_DIRECTION_WORDS = {"LONG": "bullish", "SHORT": "bearish"}


def entry_timeframe(results: Sequence[TimeframeResult]) -> Optional[TimeframeResult]:
    """Highest-scoring timeframe above the entry floor; earliest wins ties."""

    best: Optional[TimeframeResult] = None
    for result in results:
        if result.probability <= ENTRY_SCORE_FLOOR:
            continue
        if best is None or result.probability > best.probability:
            best = result
    return best


def build_entry_strategy(results: Sequence[TimeframeResult], verdict: Verdict) -> str:
    rr = verdict.risk_reward_ratio
    anchor = entry_timeframe(results)
    if anchor is None:
        return (
            f"No timeframe scores above {ENTRY_SCORE_FLOOR:.0f}; wait for confirmation before entering. "
            f"Any entry should target at least {rr:.1f}R."
        )
    if verdict.trade_recommendation in ("LONG", "SHORT"):
        action = f"Look for {verdict.trade_recommendation.lower()} entries"
    else:
        action = "Watch for a confirmed setup"
    return (
        f"{action} on the {anchor.timeframe} timeframe (score {anchor.probability:.1f}), "
        f"targeting a {rr:.1f}R risk/reward multiple."
    )


def build_exit_strategy(results: Sequence[TimeframeResult], verdict: Verdict) -> str:
    rr = verdict.risk_reward_ratio
    anchor = entry_timeframe(results)
    if anchor is None:
        return f"Take profit at {rr:.1f}x the initial risk; exit early if the higher timeframes turn against the trade."
    return (
        f"Take profit at {rr:.1f}x the initial risk; exit if structure on the {anchor.timeframe} "
        f"timeframe breaks against the position."
    )


def build_position_sizing(risk_level: str) -> str:
    return POSITION_SIZING.get(risk_level, POSITION_SIZING["HIGH"])


def build_market_sentiment(results: Sequence[TimeframeResult], snapshot: Optional[MarketSnapshot]) -> str:
    parts = [f"{result.timeframe}: {result.sentiment} ({result.probability:.1f})" for result in results]
    text = "; ".join(parts) if parts else "No timeframes selected"
    if snapshot is not None and not snapshot.is_empty:
        context = [snapshot.describe()]
        for line in (snapshot.price_context(), snapshot.range_context(), snapshot.trend_context()):
            if line:
                context.append(line + ".")
        context.append(f"Composite market sentiment {snapshot.sentiment_label()} ({snapshot.sentiment_score():.1f}).")
        text = f"{text}. {' '.join(context)}"
    return text


def build_technical_indicators(results: Sequence[TimeframeResult], snapshot: Optional[MarketSnapshot]) -> str:
    parts = [f"{result.timeframe} score {result.probability:.1f}, strength {result.strength:.1f}" for result in results]
    text = "; ".join(parts) if parts else "No timeframes selected"
    if snapshot is not None:
        readings = []
        if snapshot.rsi is not None:
            readings.append(f"RSI(14) {snapshot.rsi:.1f}")
        if snapshot.macd is not None and snapshot.macd_signal is not None:
            readings.append(f"MACD {snapshot.macd:.5f} vs signal {snapshot.macd_signal:.5f}")
        if readings:
            text = f"{text}. Daily indicators: {', '.join(readings)}."
    return text


def build_summary(pair: str, results: Sequence[TimeframeResult], verdict: Verdict) -> str:
    recommendation = verdict.trade_recommendation
    direction = _DIRECTION_WORDS.get(recommendation, "neutral")
    timeframes = ", ".join(f"{result.timeframe} ({result.sentiment.lower()})" for result in results)
    if recommendation == "AVOID":
        advice = "Avoid trading at this time"
    else:
        advice = f"Consider {recommendation.lower()} position"
    return (
        f"Top Down Analysis for {pair} shows a {verdict.overall_probability:.1f}% probability of a {direction} move. "
        f"Key timeframes: {timeframes or 'none selected'}. "
        f"Recommendation: {advice}."
    )


def build_reasoning(results: Sequence[TimeframeResult]) -> str:
    parts = []
    for result in results:
        trace = result.reasoning or "no directional signals"
        parts.append(
            f"{result.timeframe} timeframe ({result.probability:.1f}% probability, {result.sentiment.lower()}) - {trace}."
        )
    parts.append(
        "The weighted analysis prioritizes larger timeframes for trend direction and smaller timeframes for entry timing."
    )
    return "Analysis breakdown: " + " ".join(parts)


def assemble_result(
    pair: str,
    selected: Sequence[str],
    results: Mapping[str, TimeframeResult],
    verdict: Verdict,
    snapshot: Optional[MarketSnapshot] = None,
    source: AnalysisSource = "local",
) -> AnalysisResult:
    """Build the final result; the breakdown holds exactly ``selected`` in order."""

    ordered = [results[timeframe] for timeframe in selected]
    return AnalysisResult(
        overall_probability=verdict.overall_probability,
        trade_recommendation=verdict.trade_recommendation,
        confidence_level=verdict.confidence_level,
        risk_level=verdict.risk_level,
        risk_reward_ratio=verdict.risk_reward_ratio,
        ai_summary=build_summary(pair, ordered, verdict),
        ai_reasoning=build_reasoning(ordered),
        entry_strategy=build_entry_strategy(ordered, verdict),
        exit_strategy=build_exit_strategy(ordered, verdict),
        position_sizing=build_position_sizing(verdict.risk_level),
        market_sentiment=build_market_sentiment(ordered, snapshot),
        technical_indicators=build_technical_indicators(ordered, snapshot),
        timeframe_breakdown={result.timeframe: result for result in ordered},
        analysis_source=source,
    )


__all__ = [
    "ENTRY_SCORE_FLOOR",
    "POSITION_SIZING",
    "entry_timeframe",
    "build_entry_strategy",
    "build_exit_strategy",
    "build_position_sizing",
    "build_market_sentiment",
    "build_technical_indicators",
    "build_summary",
    "build_reasoning",
    "assemble_result",
]
