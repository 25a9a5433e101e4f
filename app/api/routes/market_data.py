"""
Market Data routes - quote lookup & index overview.
"""

import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional

from app.api.dependencies import get_config_engine, get_orchestrator, get_quote_source
from app.api.schemas import QuoteResponse
from app.domain.exceptions import PersistenceError
from app.domain.services.analysis_service import AnalysisOrchestrator
from app.domain.services.config_engine import ConfigEngine
from app.domain.services.portfolio_service import normalize_ticker
from app.infrastructure.market_data.types import QuoteProvider

logger = logging.getLogger(__name__)
router = APIRouter()


class StockDataRequest(BaseModel):
    tickers: List[str] = Field(..., min_length=1)


class StockDataResponse(BaseModel):
    stock_data: List[QuoteResponse]
    failed_tickers: List[str]


class IndexQuote(BaseModel):
    symbol: str
    name: str
    value: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None


@router.post("/stock-data", response_model=StockDataResponse)
async def get_stock_data(
    payload: StockDataRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Fetch quotes without spending credits; resolved quotes are cached."""
    tickers = [normalize_ticker(t) for t in payload.tickers]
    if not all(tickers):
        raise HTTPException(status_code=400, detail="Tickers must be non-empty")

    try:
        quotes, failed = await orchestrator.resolve_quotes(tickers)
    except PersistenceError as e:
        logger.error(f"❌ Failed to cache quotes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch stock data")
    return StockDataResponse(
        stock_data=[QuoteResponse.from_domain(q) for q in quotes if q is not None],
        failed_tickers=failed,
    )


@router.get("/overview", response_model=List[IndexQuote])
async def market_overview(
    config_engine: ConfigEngine = Depends(get_config_engine),
    quote_source: QuoteProvider = Depends(get_quote_source),
):
    """Latest level of each configured index; unavailable ones carry no values."""
    indices = config_engine.market_data.indices
    quotes = await asyncio.gather(*(quote_source.get_quote(i.symbol) for i in indices))

    overview: List[IndexQuote] = []
    for index, quote in zip(indices, quotes):
        if quote is None:
            overview.append(IndexQuote(symbol=index.symbol, name=index.name))
            continue
        overview.append(
            IndexQuote(
                symbol=index.symbol,
                name=index.name,
                value=quote.current_price,
                change=quote.daily_change,
                change_percent=quote.daily_change_percent,
            )
        )
    return overview
