"""Market snapshot contract consumed by the aggregation engine.

Every field is optional: a snapshot assembled from partially failed provider
calls simply leaves the missing readings unset, and the engine treats unset
fields as absent.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

MarketTrend = Literal["BULLISH", "BEARISH"]


class MarketSnapshot(BaseModel):
    """Minimal normalized view of external market indicators for one pair."""

    model_config = {"extra": "forbid", "frozen": True}

    pair: Optional[str] = None
    current_price: Optional[float] = None
    previous_price: Optional[float] = None
    daily_change_percent: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    trend: Optional[MarketTrend] = None

    # Technical indicator readings (daily interval)
    rsi: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_hist: Optional[float] = None

    # News feed tallies
    news_positive: Optional[int] = None
    news_negative: Optional[int] = None
    news_total: Optional[int] = None

    @property
    def volatility(self) -> Optional[float]:
        if self.daily_change_percent is None:
            return None
        return abs(self.daily_change_percent)

    @property
    def momentum(self) -> Optional[str]:
        if self.daily_change_percent is None:
            return None
        return "positive" if self.daily_change_percent > 0 else "negative"

    @property
    def move_strength(self) -> Optional[str]:
        volatility = self.volatility
        if volatility is None:
            return None
        if volatility > 1:
            return "strong"
        if volatility > 0.5:
            return "moderate"
        return "weak"

    @property
    def is_empty(self) -> bool:
        return all(value is None for key, value in self if key != "pair")

    def describe(self) -> str:
        """One-sentence volatility description."""

        volatility = self.volatility
        if volatility is None:
            return "Market data unavailable."
        if volatility > 2:
            return f"The market is experiencing high volatility with a {self.move_strength} {self.momentum} momentum."
        if volatility > 1:
            return f"Moderate volatility observed with {self.momentum} price movement."
        return "Low volatility environment with minimal price movement."

    def price_context(self) -> Optional[str]:
        if self.current_price is None or self.previous_price is None:
            return None
        change = self.current_price - self.previous_price
        direction = "gain" if change > 0 else "loss"
        pct = abs(self.daily_change_percent or 0.0)
        return f"Current price at {self.current_price:.5f} with {direction} of {abs(change):.5f} ({pct:.2f}%)"

    def range_context(self) -> Optional[str]:
        if self.high is None or self.low is None:
            return None
        return f"Trading range: {self.low:.5f} - {self.high:.5f}"

    def trend_context(self) -> Optional[str]:
        if self.trend is None:
            return None
        strength = self.move_strength or "unknown"
        return f"{self.trend.lower()} trend with {strength} momentum"

    def sentiment_score(self) -> float:
        """Composite -100..100 score from price action, news balance and indicators."""

        score = 0.0
        if self.daily_change_percent is not None:
            if self.daily_change_percent > 1:
                score += 20
            elif self.daily_change_percent < -1:
                score -= 20
        if self.news_total:
            positive = self.news_positive or 0
            negative = self.news_negative or 0
            score += (positive - negative) / self.news_total * 30
        if self.rsi is not None:
            if self.rsi < 30:
                score += 15
            elif self.rsi > 70:
                score -= 15
        if None not in (self.macd, self.macd_signal, self.macd_hist):
            if self.macd_hist > 0 and self.macd > self.macd_signal:
                score += 10
            elif self.macd_hist < 0 and self.macd < self.macd_signal:
                score -= 10
        return max(-100.0, min(100.0, score))

    def sentiment_label(self) -> Literal["bullish", "bearish", "neutral"]:
        score = self.sentiment_score()
        if score > 20:
            return "bullish"
        if score < -20:
            return "bearish"
        return "neutral"


__all__ = ["MarketSnapshot", "MarketTrend"]
