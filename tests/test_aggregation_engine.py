from __future__ import annotations

import pytest

from schemas.market_snapshot import MarketSnapshot
from schemas.tda import TimeframeResult
from trading_core.aggregation_engine import AggregationEngine, Verdict
from trading_core.config import AggregationConfig

ENGINE = AggregationEngine()


def _result(timeframe: str, probability: float, sentiment: str = "NEUTRAL") -> TimeframeResult:
    return TimeframeResult(timeframe=timeframe, probability=probability, sentiment=sentiment, strength=100)


def _results(*items: TimeframeResult) -> dict:
    return {item.timeframe: item for item in items}


def test_reference_timeframe_prefers_weight_then_selection_order() -> None:
    assert ENGINE.reference_timeframe(["H1", "W1", "M15"]) == "W1"
    assert ENGINE.reference_timeframe(["W1", "MN1"]) == "W1"
    assert ENGINE.reference_timeframe(["MN1", "W1"]) == "MN1"
    assert ENGINE.reference_timeframe(["M15", "H12"]) == "H12"
    assert ENGINE.reference_timeframe([]) is None


def test_weighted_average() -> None:
    results = _results(_result("DAILY", 65, "BULLISH"), _result("H1", 42, "BEARISH"))
    assert ENGINE.overall_probability(results, ["DAILY", "H1"]) == pytest.approx(60.4)


def test_missing_result_counts_as_neutral() -> None:
    results = _results(_result("DAILY", 80))
    assert ENGINE.overall_probability(results, ["DAILY", "H1"]) == pytest.approx(74.0)


def test_unknown_timeframe_uses_fallback_weight() -> None:
    assert ENGINE.overall_probability(_results(_result("X1", 80)), ["X1"]) == 80
    assert AggregationConfig().weight("X1") == 0.1


def test_empty_selection_is_neutral() -> None:
    verdict = ENGINE.aggregate({}, [])
    assert verdict.overall_probability == 50
    assert verdict.trade_recommendation == "NEUTRAL"
    assert verdict.confidence_level == 50
    assert verdict.risk_level == "MEDIUM"
    assert verdict.risk_reward_ratio == 2.0
    assert verdict.reference_timeframe is None


def test_strong_band_long() -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", 83, "BULLISH")), ["DAILY"])
    assert verdict.trade_recommendation == "LONG"
    assert verdict.confidence_level == 93
    assert verdict.risk_level == "LOW"
    assert verdict.risk_reward_ratio == 1.5


def test_strong_band_confidence_is_capped() -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", 100, "BULLISH")), ["DAILY"])
    assert verdict.confidence_level == 95


def test_high_probability_without_bullish_reference_reads_short() -> None:
    results = _results(_result("DAILY", 70, "NEUTRAL"), _result("W1", 100, "BULLISH"))
    verdict = ENGINE.aggregate(results, ["DAILY", "W1"])
    assert verdict.overall_probability >= 75
    assert verdict.reference_timeframe == "DAILY"
    assert verdict.trade_recommendation == "SHORT"


def test_directional_band() -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", 65, "BULLISH")), ["DAILY"])
    assert verdict.trade_recommendation == "LONG"
    assert verdict.confidence_level == 65
    assert verdict.risk_level == "MEDIUM"
    assert verdict.risk_reward_ratio == 2.0


def test_neutral_band() -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", 45)), ["DAILY"])
    assert verdict.trade_recommendation == "NEUTRAL"
    assert verdict.confidence_level == 45


def test_avoid_band() -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", 22, "BEARISH")), ["DAILY"])
    assert verdict.trade_recommendation == "AVOID"
    assert verdict.confidence_level == 78
    assert verdict.risk_level == "HIGH"
    assert verdict.risk_reward_ratio == 3.0


@pytest.mark.parametrize(
    "probability,expected",
    [(75, "LONG"), (74.99, "LONG"), (60, "LONG"), (59.99, "NEUTRAL"), (45, "NEUTRAL"), (44.99, "AVOID")],
)
def test_band_edges_are_inclusive(probability: float, expected: str) -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", probability, "BULLISH")), ["DAILY"])
    assert verdict.trade_recommendation == expected


def test_no_snapshot_leaves_verdict_untouched() -> None:
    verdict = ENGINE.aggregate(_results(_result("DAILY", 65, "BULLISH")), ["DAILY"])
    assert ENGINE.adjust_for_market(verdict, [], None) is verdict


def test_alignment_without_trend_is_half() -> None:
    assert ENGINE.market_alignment([_result("DAILY", 65, "BULLISH")], MarketSnapshot()) == 0.5
    assert ENGINE.market_alignment([], MarketSnapshot(trend="BULLISH")) == 0.5


def test_alignment_agreement_and_disagreement() -> None:
    results = [_result("DAILY", 65, "BULLISH"), _result("H4", 62, "BULLISH"), _result("H1", 40, "BEARISH")]
    assert ENGINE.market_alignment(results, MarketSnapshot(trend="BULLISH")) == pytest.approx(2 / 3)
    assert ENGINE.market_alignment(results[:2], MarketSnapshot(trend="BULLISH")) == 1.0
    assert ENGINE.market_alignment(results, MarketSnapshot(trend="BEARISH")) == pytest.approx(1 / 3)
    assert ENGINE.market_alignment(results[:2], MarketSnapshot(trend="BEARISH")) == 0.0


def test_alignment_without_majority_direction_is_half() -> None:
    neutral = [_result("DAILY", 50)]
    split = [_result("DAILY", 65, "BULLISH"), _result("H1", 40, "BEARISH")]
    for trend in ("BULLISH", "BEARISH"):
        assert ENGINE.market_alignment(neutral, MarketSnapshot(trend=trend)) == 0.5
        assert ENGINE.market_alignment(split, MarketSnapshot(trend=trend)) == 0.5


def test_neutral_analysis_is_not_moved_by_market_trend() -> None:
    results = _results(_result("DAILY", 50))
    verdict = ENGINE.evaluate(results, ["DAILY"], MarketSnapshot(trend="BEARISH", daily_change_percent=1.0))
    assert verdict.market_alignment == 0.5
    assert verdict.overall_probability == 50
    assert verdict.trade_recommendation == "NEUTRAL"


def test_partial_agreement_leaves_probability_alone() -> None:
    results = _results(
        _result("DAILY", 65, "BULLISH"), _result("H4", 62, "BULLISH"), _result("H1", 40, "BEARISH")
    )
    selected = ["DAILY", "H4", "H1"]
    plain = ENGINE.evaluate(results, selected)
    aligned = ENGINE.evaluate(results, selected, MarketSnapshot(trend="BULLISH", daily_change_percent=1.0))
    assert aligned.overall_probability == plain.overall_probability


def test_aligned_trend_raises_probability_without_rebanding() -> None:
    results = _results(_result("DAILY", 65, "BULLISH"))
    snapshot = MarketSnapshot(trend="BULLISH", daily_change_percent=1.0)
    verdict = ENGINE.evaluate(results, ["DAILY"], snapshot)
    assert verdict.overall_probability == 75
    assert verdict.trade_recommendation == "LONG"
    assert verdict.confidence_level == 65
    assert verdict.risk_level == "MEDIUM"
    assert verdict.market_alignment == 1.0


def test_opposed_trend_lowers_probability() -> None:
    results = _results(_result("DAILY", 65, "BULLISH"))
    verdict = ENGINE.evaluate(results, ["DAILY"], MarketSnapshot(trend="BEARISH", daily_change_percent=-1.0))
    assert verdict.overall_probability == 55
    assert verdict.trade_recommendation == "LONG"


def test_alignment_shift_is_clamped() -> None:
    results = _results(_result("DAILY", 100, "BULLISH"))
    verdict = ENGINE.evaluate(results, ["DAILY"], MarketSnapshot(trend="BULLISH", daily_change_percent=1.0))
    assert verdict.overall_probability == 100


def test_high_volatility_raises_risk() -> None:
    results = _results(_result("DAILY", 65, "BULLISH"))
    verdict = ENGINE.evaluate(results, ["DAILY"], MarketSnapshot(daily_change_percent=3.5))
    assert verdict.overall_probability == 65
    assert verdict.confidence_level == 50
    assert verdict.risk_level == "HIGH"
    assert verdict.risk_reward_ratio == 3.0


def test_low_volatility_lowers_risk() -> None:
    results = _results(_result("DAILY", 65, "BULLISH"))
    verdict = ENGINE.evaluate(results, ["DAILY"], MarketSnapshot(daily_change_percent=-0.2))
    assert verdict.confidence_level == 75
    assert verdict.risk_level == "LOW"
    assert verdict.risk_reward_ratio == 1.5


def test_volatility_penalty_floors_at_zero() -> None:
    verdict = Verdict(40, "AVOID", 5, "HIGH", 3.0)
    adjusted = ENGINE.adjust_for_market(verdict, [], MarketSnapshot(daily_change_percent=5))
    assert adjusted.confidence_level == 0


@pytest.mark.parametrize("change", [2.01, 3.0, -5.0, 10.0])
def test_any_high_volatility_snapshot_is_high_risk(change: float) -> None:
    for probability in (10, 50, 65, 90):
        verdict = ENGINE.evaluate(_results(_result("DAILY", probability)), ["DAILY"], MarketSnapshot(daily_change_percent=change))
        assert verdict.risk_level == "HIGH"


@pytest.mark.parametrize("change", [0.0, 0.1, -0.49])
def test_any_calm_snapshot_is_low_risk(change: float) -> None:
    for probability in (10, 50, 65, 90):
        verdict = ENGINE.evaluate(_results(_result("DAILY", probability)), ["DAILY"], MarketSnapshot(daily_change_percent=change))
        assert verdict.risk_level == "LOW"


def test_custom_weights() -> None:
    engine = AggregationEngine(AggregationConfig(timeframe_weights={"H1": 1.0, "DAILY": 0.0}))
    results = _results(_result("DAILY", 90), _result("H1", 30))
    assert engine.overall_probability(results, ["DAILY", "H1"]) == 30
    assert engine.reference_timeframe(["DAILY", "H1"]) == "H1"


def test_zero_total_weight_is_neutral() -> None:
    engine = AggregationEngine(AggregationConfig(timeframe_weights={"DAILY": 0.0}))
    assert engine.overall_probability(_results(_result("DAILY", 90)), ["DAILY"]) == 50
