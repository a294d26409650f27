"""Normalize external market indicator payloads into a ``MarketSnapshot``.

Each source is parsed independently. A source that is missing or malformed
leaves its fields unset; nothing here raises for bad provider data.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

from app.core.logging import get_logger
from schemas.market_snapshot import MarketSnapshot

LOG = get_logger(__name__)

NEWS_POSITIVE_THRESHOLD = 0.1
NEWS_NEGATIVE_THRESHOLD = -0.1

_FIELD_ALIASES = {
    "currentPrice": "current_price",
    "previousPrice": "previous_price",
    "dailyChangePercent": "daily_change_percent",
    "marketTrend": "trend",
    "market_trend": "trend",
    "currencyPair": "pair",
    "currency_pair": "pair",
}
_FLOAT_FIELDS = {
    "current_price",
    "previous_price",
    "daily_change_percent",
    "high",
    "low",
    "rsi",
    "macd",
    "macd_signal",
    "macd_hist",
}
_INT_FIELDS = {"news_positive", "news_negative", "news_total"}
_PARSE_ERRORS = (KeyError, TypeError, ValueError, IndexError, AttributeError)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip().rstrip("%"))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _latest(series: Mapping[str, Any]) -> tuple[str, Any]:
    latest = max(series)
    return latest, series[latest]


def parse_daily_series(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Quote fields from an FX_DAILY response: latest close versus the prior close."""

    series = payload["Time Series FX (Daily)"]
    dates = sorted(series, reverse=True)
    latest, previous = series[dates[0]], series[dates[1]]
    current_price = float(latest["4. close"])
    previous_price = float(previous["4. close"])
    if previous_price == 0:
        raise ValueError("previous close is zero")
    return {
        "current_price": current_price,
        "previous_price": previous_price,
        "daily_change_percent": (current_price - previous_price) / previous_price * 100,
        "high": float(latest["2. high"]),
        "low": float(latest["3. low"]),
        "trend": "BULLISH" if current_price > previous_price else "BEARISH",
    }


def parse_rsi(payload: Mapping[str, Any]) -> Dict[str, Any]:
    _, row = _latest(payload["Technical Analysis: RSI"])
    return {"rsi": float(row["RSI"])}


def parse_macd(payload: Mapping[str, Any]) -> Dict[str, Any]:
    _, row = _latest(payload["Technical Analysis: MACD"])
    return {
        "macd": float(row["MACD"]),
        "macd_signal": float(row["MACD_Signal"]),
        "macd_hist": float(row["MACD_Hist"]),
    }


def parse_news(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Tally positive/negative items in a NEWS_SENTIMENT feed."""

    feed = payload["feed"]
    positive = negative = 0
    for item in feed:
        score = _to_float(item.get("overall_sentiment_score"))
        if score is None:
            continue
        if score > NEWS_POSITIVE_THRESHOLD:
            positive += 1
        elif score < NEWS_NEGATIVE_THRESHOLD:
            negative += 1
    return {"news_positive": positive, "news_negative": negative, "news_total": len(feed)}


def _safe_parse(name: str, parser, payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if payload is None:
        return {}
    try:
        return parser(payload)
    except _PARSE_ERRORS as exc:
        LOG.warning("market source unusable; treating as absent", source=name, error=str(exc))
        return {}


def build_market_snapshot(
    pair: str,
    *,
    daily: Optional[Mapping[str, Any]] = None,
    rsi: Optional[Mapping[str, Any]] = None,
    macd: Optional[Mapping[str, Any]] = None,
    news: Optional[Mapping[str, Any]] = None,
) -> MarketSnapshot:
    """Merge whichever provider payloads arrived into one snapshot."""

    fields: Dict[str, Any] = {"pair": pair}
    fields.update(_safe_parse("daily", parse_daily_series, daily))
    fields.update(_safe_parse("rsi", parse_rsi, rsi))
    fields.update(_safe_parse("macd", parse_macd, macd))
    fields.update(_safe_parse("news", parse_news, news))
    return MarketSnapshot(**fields)


def snapshot_from_mapping(data: Optional[Mapping[str, Any]]) -> Optional[MarketSnapshot]:
    """Coerce a loosely shaped snapshot dict; unusable fields are dropped."""

    if not data:
        return None
    fields: Dict[str, Any] = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(key, key)
        if name in _FLOAT_FIELDS:
            number = _to_float(value)
            if number is not None:
                fields[name] = number
        elif name in _INT_FIELDS:
            number = _to_float(value)
            if number is not None and number >= 0:
                fields[name] = int(number)
        elif name == "trend":
            trend = str(value).strip().upper() if value is not None else ""
            if trend in ("BULLISH", "BEARISH"):
                fields[name] = trend
        elif name == "pair" and isinstance(value, str):
            fields[name] = value
    return MarketSnapshot(**fields)


__all__ = [
    "parse_daily_series",
    "parse_rsi",
    "parse_macd",
    "parse_news",
    "build_market_snapshot",
    "snapshot_from_mapping",
]
