"""
Provider chain - try primary, then fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from app.domain.models import Quote
from app.infrastructure.market_data.types import QuoteProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamedProvider:
    name: str
    provider: QuoteProvider


class ChainedQuoteProvider:
    def __init__(self, providers: List[NamedProvider]):
        if not providers:
            raise ValueError("At least one quote provider is required")
        self.providers = providers

    @property
    def names(self) -> List[str]:
        return [named.name for named in self.providers]

    async def get_quote(self, ticker: str) -> Optional[Quote]:
        for position, named in enumerate(self.providers):
            try:
                quote = await named.provider.get_quote(ticker)
            except Exception as exc:
                logger.warning(f"Quote provider {named.name} failed for {ticker}: {exc}")
                continue
            if quote is not None:
                if position:
                    logger.info(f"↪️ Quote for {ticker} served by fallback provider {named.name}")
                return quote
        return None
