"""
Quote provider factory (config-driven).
"""

from __future__ import annotations

from typing import List, Optional

from app.config import settings
from app.domain.services.config_engine import ConfigEngine, MarketDataConfig, load_config_engine
from app.infrastructure.market_data.demo_provider import DemoQuoteProvider
from app.infrastructure.market_data.provider_chain import ChainedQuoteProvider, NamedProvider
from app.infrastructure.market_data.types import QuoteProvider
from app.infrastructure.market_data.yfinance_provider import YFinanceQuoteProvider


def _build_provider(name: str, market_cfg: MarketDataConfig) -> QuoteProvider:
    name = (name or "").lower()
    if name == "demo":
        return DemoQuoteProvider(suffix=market_cfg.default_suffix)
    if name == "yfinance":
        return YFinanceQuoteProvider(
            default_suffix=market_cfg.default_suffix,
            cache_ttl_seconds=market_cfg.cache_ttl,
            retries=market_cfg.retries,
        )
    raise ValueError(f"Unknown quote provider: {name}")


def get_quote_provider(config_engine: Optional[ConfigEngine] = None) -> ChainedQuoteProvider:
    """
    Primary provider from MARKET_DATA_PROVIDER (or app.yml), then configured
    fallbacks. MOCK_MARKET_DATA appends the demo provider as last resort.
    """
    config_engine = config_engine or load_config_engine()
    market_cfg = config_engine.market_data

    provider_name = (settings.MARKET_DATA_PROVIDER or market_cfg.provider).lower()
    names: List[str] = [provider_name]
    for fallback in market_cfg.fallback_providers:
        if fallback not in names:
            names.append(fallback)
    if settings.MOCK_MARKET_DATA and "demo" not in names:
        names.append("demo")

    providers = [NamedProvider(name, _build_provider(name, market_cfg)) for name in names]
    return ChainedQuoteProvider(providers)
