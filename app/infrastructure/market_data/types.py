"""
Quote provider protocol for type hints.
"""

from __future__ import annotations

from typing import Optional, Protocol

from app.domain.models import Quote


class QuoteProvider(Protocol):
    async def get_quote(self, ticker: str) -> Optional[Quote]:
        """Current quote for ticker, or None when the symbol is unknown."""
        ...
