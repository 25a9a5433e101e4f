"""
Demo quote provider for development.
Synthetic but deterministic: the same ticker always yields the same quote.
"""

from __future__ import annotations

import hashlib
import random
from typing import Optional

from app.domain.models import Quote
from app.utils.time import now_ist_naive

_DEMO_SECTORS = (
    "Technology",
    "Financial Services",
    "Consumer Defensive",
    "Healthcare",
    "Energy",
    "Industrials",
)


class DemoQuoteProvider:
    def __init__(self, suffix: str = ".NS"):
        self._suffix = suffix

    def _rng(self, ticker: str) -> random.Random:
        seed = int(hashlib.sha256(ticker.encode("utf-8")).hexdigest()[:16], 16)
        return random.Random(seed)

    async def get_quote(self, ticker: str) -> Optional[Quote]:
        ticker = (ticker or "").strip()
        if not ticker:
            return None
        rng = self._rng(ticker.upper())

        price = round(rng.uniform(100, 1100), 2)
        change_pct = round(rng.uniform(-2, 2), 2)
        prev_close = price / (1 + change_pct / 100)
        return Quote(
            ticker=ticker,
            name=ticker.upper().replace(self._suffix, "") if self._suffix else ticker.upper(),
            current_price=price,
            daily_change=round(price - prev_close, 2),
            daily_change_percent=change_pct,
            moving_average_50=round(price * (1 + rng.uniform(-0.08, 0.08)), 2),
            sector=rng.choice(_DEMO_SECTORS),
            last_updated=now_ist_naive(),
        )
