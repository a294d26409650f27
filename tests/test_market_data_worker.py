from __future__ import annotations

import httpx
import pytest

from app.core.config import Settings
from services.market_data_worker import MarketDataWorker, split_pair

DAILY = {
    "Time Series FX (Daily)": {
        "2024-03-04": {"2. high": "1.1080", "3. low": "1.0990", "4. close": "1.0780"},
        "2024-03-01": {"2. high": "1.1010", "3. low": "1.0940", "4. close": "1.1000"},
    }
}
RSI = {"Technical Analysis: RSI": {"2024-03-04": {"RSI": "31.2"}}}
MACD = {"Technical Analysis: MACD": {"2024-03-04": {"MACD": "-0.001", "MACD_Signal": "0.0", "MACD_Hist": "-0.001"}}}
NEWS = {"feed": [{"overall_sentiment_score": -0.4}, {"overall_sentiment_score": 0.0}]}


def _settings() -> Settings:
    return Settings(ALPHA_VANTAGE_API_KEY="test-key")


def _client(responses: dict, seen: list | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        function = request.url.params["function"]
        if seen is not None:
            seen.append(dict(request.url.params))
        status, body = responses[function]
        return httpx.Response(status, json=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_split_pair_variants() -> None:
    assert split_pair("EURUSD") == ("EUR", "USD")
    assert split_pair("gbp/jpy") == ("GBP", "JPY")
    assert split_pair("AUD-NZD") == ("AUD", "NZD")
    with pytest.raises(ValueError):
        split_pair("XAU")


@pytest.mark.asyncio
async def test_fetch_snapshot_merges_all_sources() -> None:
    seen: list = []
    responses = {"FX_DAILY": (200, DAILY), "RSI": (200, RSI), "MACD": (200, MACD), "NEWS_SENTIMENT": (200, NEWS)}
    async with _client(responses, seen) as client:
        snapshot = await MarketDataWorker(_settings(), client).fetch_snapshot("EUR/USD")

    assert snapshot is not None
    assert snapshot.trend == "BEARISH"
    assert snapshot.daily_change_percent == pytest.approx(-2.0)
    assert snapshot.rsi == pytest.approx(31.2)
    assert snapshot.macd_hist == pytest.approx(-0.001)
    assert (snapshot.news_positive, snapshot.news_negative, snapshot.news_total) == (0, 1, 2)
    assert {params["function"] for params in seen} == {"FX_DAILY", "RSI", "MACD", "NEWS_SENTIMENT"}
    assert all(params["apikey"] == "test-key" for params in seen)
    daily_params = next(params for params in seen if params["function"] == "FX_DAILY")
    assert (daily_params["from_symbol"], daily_params["to_symbol"]) == ("EUR", "USD")


@pytest.mark.asyncio
async def test_failed_sources_are_left_out() -> None:
    responses = {
        "FX_DAILY": (200, DAILY),
        "RSI": (200, {"Note": "API call frequency exceeded"}),
        "MACD": (503, {"detail": "unavailable"}),
        "NEWS_SENTIMENT": (200, {"unexpected": True}),
    }
    async with _client(responses) as client:
        snapshot = await MarketDataWorker(_settings(), client).fetch_snapshot("EURUSD")

    assert snapshot is not None
    assert snapshot.current_price == pytest.approx(1.078)
    assert snapshot.rsi is None
    assert snapshot.macd is None
    assert snapshot.news_total is None


@pytest.mark.asyncio
async def test_fetch_sources_reports_failures_as_none() -> None:
    responses = {
        "FX_DAILY": (500, {}),
        "RSI": (200, RSI),
        "MACD": (200, {"Error Message": "Invalid API call"}),
        "NEWS_SENTIMENT": (200, NEWS),
    }
    async with _client(responses) as client:
        payloads = await MarketDataWorker(_settings(), client).fetch_sources("EURUSD")

    assert payloads["daily"] is None
    assert payloads["macd"] is None
    assert payloads["rsi"] == RSI
    assert payloads["news"] == NEWS


@pytest.mark.asyncio
async def test_all_sources_failing_yields_no_snapshot() -> None:
    responses = {name: (500, {}) for name in ("FX_DAILY", "RSI", "MACD", "NEWS_SENTIMENT")}
    async with _client(responses) as client:
        assert await MarketDataWorker(_settings(), client).fetch_snapshot("EURUSD") is None


@pytest.mark.asyncio
async def test_missing_key_disables_fetching() -> None:
    seen: list = []
    async with _client({}, seen) as client:
        worker = MarketDataWorker(Settings(), client)
        assert not worker.enabled
        assert await worker.fetch_snapshot("EURUSD") is None
    assert seen == []


@pytest.mark.asyncio
async def test_unsupported_pair_yields_no_snapshot() -> None:
    seen: list = []
    async with _client({}, seen) as client:
        assert await MarketDataWorker(_settings(), client).fetch_snapshot("GOLD") is None
    assert seen == []
