"""
YFinance Quote Provider
Async-safe Yahoo Finance integration for NSE/BSE stocks and indices
"""

import asyncio
import logging
import math
import random
import time
from typing import Any, Dict, Optional

import yfinance as yf

from app.domain.models import Quote
from app.utils.time import now_ist_naive

logger = logging.getLogger(__name__)


def _sanitize(value: Any) -> Optional[float]:
    """None for missing / NaN values, float otherwise"""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


class YFinanceQuoteProvider:
    """
    Yahoo Finance quote provider
    Async-safe via thread offloading
    """

    def __init__(
        self,
        default_suffix: str = ".NS",
        cache_ttl_seconds: int = 60,
        retries: int = 2,
    ):
        self.default_suffix = default_suffix
        self.cache_ttl_seconds = cache_ttl_seconds
        self.retries = retries
        self._cache: Dict[str, tuple[float, Quote]] = {}

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    def resolve_symbol(self, ticker: str) -> str:
        """
        Map a user ticker to a Yahoo symbol.
        Indices (^NSEI) and already-suffixed tickers (TCS.NS) pass through.
        """
        ticker = ticker.strip().upper()
        if ticker.startswith("^") or "." in ticker or not self.default_suffix:
            return ticker
        return f"{ticker}{self.default_suffix}"

    async def _with_retry(self, func, *args):
        """
        Retry wrapper around a blocking yfinance call.
        """
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                return await asyncio.to_thread(func, *args)
            except Exception as exc:
                last_exc = exc
                if attempt < self.retries:
                    await asyncio.sleep(0.4 * (2 ** attempt) + random.random() * 0.2)
        raise last_exc

    def _cache_get(self, key: str) -> Optional[Quote]:
        cached = self._cache.get(key)
        if not cached:
            return None
        ts, value = cached
        if time.time() - ts > self.cache_ttl_seconds:
            return None
        return value

    def _cache_set(self, key: str, value: Quote) -> None:
        self._cache[key] = (time.time(), value)

    def _fetch_sync(self, symbol: str) -> Optional[Dict[str, Any]]:
        """
        Blocking fetch of one symbol.

        Field access order:
        1. Ticker.info: price, change, change %, 50-day average, sector, name
        2. Ticker.history(period='3mo') closes: fallback when info has no price
        """
        ticker = yf.Ticker(symbol)
        info = ticker.info or {}

        price = _sanitize(info.get("regularMarketPrice")) or _sanitize(info.get("currentPrice"))
        data: Dict[str, Any] = {
            "name": info.get("shortName") or info.get("longName") or info.get("displayName"),
            "sector": info.get("sector") or None,
            "moving_average_50": _sanitize(info.get("fiftyDayAverage")),
        }

        if price is not None:
            data["price"] = price
            data["change"] = _sanitize(info.get("regularMarketChange")) or 0.0
            data["change_pct"] = _sanitize(info.get("regularMarketChangePercent")) or 0.0
            return data

        hist = ticker.history(period="3mo", interval="1d", auto_adjust=False)
        if hist.empty or "Close" not in hist:
            return None
        closes = hist["Close"].dropna()
        if closes.empty:
            return None

        last_close = float(closes.iloc[-1])
        prev_close = float(closes.iloc[-2]) if len(closes) > 1 else None
        change = last_close - prev_close if prev_close else 0.0
        data["price"] = last_close
        data["change"] = change
        data["change_pct"] = (change / prev_close) * 100 if prev_close else 0.0
        if data["moving_average_50"] is None and len(closes) >= 50:
            data["moving_average_50"] = float(closes.tail(50).mean())
        return data

    # ------------------------------------------------------------------
    # QUOTES
    # ------------------------------------------------------------------

    async def get_quote(self, ticker: str) -> Optional[Quote]:
        """
        Get the latest quote for a ticker.
        Returns None when Yahoo has no usable price. Never raises.
        """
        symbol = self.resolve_symbol(ticker)
        cached = self._cache_get(symbol)
        if cached is not None:
            return cached

        try:
            data = await self._with_retry(self._fetch_sync, symbol)
        except Exception as e:
            logger.error(f"Error fetching Yahoo Finance data for {ticker} ({symbol}): {e}")
            return None

        if not data or data.get("price") is None or data["price"] < 0:
            logger.warning(f"No price data for {ticker} ({symbol})")
            return None

        name = data.get("name")
        if not name and self.default_suffix:
            name = symbol.replace(self.default_suffix, "")

        quote = Quote(
            ticker=ticker,
            name=name or symbol,
            current_price=float(data["price"]),
            daily_change=float(data["change"]),
            daily_change_percent=float(data["change_pct"]),
            moving_average_50=data.get("moving_average_50"),
            sector=data.get("sector"),
            last_updated=now_ist_naive(),
        )
        self._cache_set(symbol, quote)
        return quote
