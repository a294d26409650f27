"""Alpha Vantage market data fetcher for the optional market snapshot."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError
from app.core.logging import get_logger
from schemas.market_snapshot import MarketSnapshot
from services.market_snapshot_adapter import build_market_snapshot

LOG = get_logger(__name__)


def split_pair(pair: str) -> tuple[str, str]:
    """Split ``EURUSD`` / ``EUR/USD`` / ``EUR-USD`` into base and quote codes."""

    cleaned = "".join(ch for ch in pair.upper() if ch.isalpha())
    if len(cleaned) != 6:
        raise ValueError(f"unsupported currency pair: {pair!r}")
    return cleaned[:3], cleaned[3:]


class MarketDataWorker:
    """Fetches quote, indicator and news sources concurrently.

    Each source fails independently; a failed source is logged and left out
    of the snapshot. No retries are attempted.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None) -> None:
        self._settings = settings or get_settings()
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._settings.alpha_vantage_api_key is not None

    async def _query(self, client: httpx.AsyncClient, params: Dict[str, str]) -> Dict[str, Any]:
        key = self._settings.alpha_vantage_api_key
        if key is None:
            raise ExternalServiceError("ALPHA_VANTAGE_API_KEY not set")
        query = {**params, "apikey": key.get_secret_value()}
        response = await client.get(str(self._settings.alpha_vantage_base_url), params=query)
        if response.status_code != 200:
            raise ExternalServiceError(
                f"Alpha Vantage {params['function']} returned {response.status_code}",
                response.status_code,
            )
        payload = response.json()
        if not isinstance(payload, dict):
            raise ExternalServiceError(f"Alpha Vantage {params['function']} returned a non-object payload")
        # Rate limiting and bad parameters come back as 200 with a note instead of data.
        for marker in ("Error Message", "Note", "Information"):
            if marker in payload and len(payload) == 1:
                raise ExternalServiceError(str(payload[marker]), response.status_code, payload=payload)
        return payload

    async def fetch_sources(self, pair: str) -> Dict[str, Optional[Dict[str, Any]]]:
        """Return raw payloads keyed by source; failed sources map to ``None``."""

        base, quote = split_pair(pair)
        symbol = f"{base}{quote}"
        requests = {
            "daily": {"function": "FX_DAILY", "from_symbol": base, "to_symbol": quote},
            "rsi": {
                "function": "RSI",
                "symbol": symbol,
                "interval": "daily",
                "time_period": "14",
                "series_type": "close",
            },
            "macd": {"function": "MACD", "symbol": symbol, "interval": "daily", "series_type": "close"},
            "news": {"function": "NEWS_SENTIMENT", "tickers": f"FOREX:{base}"},
        }
        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(self._settings.market_data_timeout_seconds))
        try:
            outcomes = await asyncio.gather(
                *(self._query(client, params) for params in requests.values()),
                return_exceptions=True,
            )
        finally:
            if self._client is None:
                await client.aclose()

        payloads: Dict[str, Optional[Dict[str, Any]]] = {}
        for name, outcome in zip(requests, outcomes):
            if isinstance(outcome, BaseException):
                LOG.warning("market data source failed", source=name, pair=pair, error=str(outcome))
                payloads[name] = None
            else:
                payloads[name] = outcome
        return payloads

    async def fetch_snapshot(self, pair: str) -> Optional[MarketSnapshot]:
        """Return a snapshot for ``pair`` or ``None`` when market data is unavailable."""

        if not self.enabled:
            LOG.info("market data disabled; ALPHA_VANTAGE_API_KEY not set")
            return None
        try:
            payloads = await self.fetch_sources(pair)
        except ValueError as exc:
            LOG.warning("market data skipped", pair=pair, error=str(exc))
            return None
        snapshot = build_market_snapshot(pair, **payloads)
        if snapshot.is_empty:
            LOG.warning("all market data sources failed; continuing without snapshot", pair=pair)
            return None
        return snapshot


__all__ = ["MarketDataWorker", "split_pair"]
