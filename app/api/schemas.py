"""
API request/response models
"""

from pydantic import BaseModel
from typing import List, Optional

from app.domain.models import (
    AdviceItem,
    Portfolio,
    PortfolioAnalysis,
    Quote,
    UsageLedgerEntry,
)
from app.utils.time import to_ist_iso_db


class StockInput(BaseModel):
    # range checks happen in the domain so they surface as 400s
    ticker: str
    quantity: float


class AdviceResponse(BaseModel):
    type: str
    ticker: Optional[str] = None
    message: str
    confidence: str
    icon: str

    @classmethod
    def from_domain(cls, item: AdviceItem) -> "AdviceResponse":
        return cls(**item.to_dict())


class AnalysisResponse(BaseModel):
    id: str
    portfolio_id: str
    advice: List[AdviceResponse]
    total_value: float
    risk_level: Optional[str]
    diversification_score: Optional[float]
    created_at: str

    @classmethod
    def from_domain(cls, analysis: PortfolioAnalysis) -> "AnalysisResponse":
        return cls(
            id=analysis.id,
            portfolio_id=analysis.portfolio_id,
            advice=[AdviceResponse.from_domain(a) for a in analysis.advice],
            total_value=round(analysis.total_value, 2),
            risk_level=analysis.risk_level,
            diversification_score=analysis.diversification_score,
            created_at=to_ist_iso_db(analysis.created_at),
        )


class QuoteResponse(BaseModel):
    ticker: str
    name: Optional[str]
    current_price: float
    daily_change: float
    daily_change_percent: float
    moving_average_50: Optional[float]
    sector: Optional[str]
    last_updated: str

    @classmethod
    def from_domain(cls, quote: Quote) -> "QuoteResponse":
        return cls(
            ticker=quote.ticker,
            name=quote.name,
            current_price=quote.current_price,
            daily_change=quote.daily_change,
            daily_change_percent=quote.daily_change_percent,
            moving_average_50=quote.moving_average_50,
            sector=quote.sector,
            last_updated=to_ist_iso_db(quote.last_updated),
        )


class UsageResponse(BaseModel):
    date: str
    analyses_performed: int
    credits_used: int
    credits_remaining: int

    @classmethod
    def from_domain(cls, entry: UsageLedgerEntry) -> "UsageResponse":
        return cls(**entry.to_dict())


class HoldingResponse(BaseModel):
    ticker: str
    quantity: float


class PortfolioResponse(BaseModel):
    id: str
    name: str
    holdings: List[HoldingResponse]
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, portfolio: Portfolio) -> "PortfolioResponse":
        return cls(
            id=portfolio.id,
            name=portfolio.name,
            holdings=[
                HoldingResponse(ticker=h.ticker, quantity=h.quantity)
                for h in portfolio.holdings
            ],
            created_at=to_ist_iso_db(portfolio.created_at),
            updated_at=to_ist_iso_db(portfolio.updated_at),
        )
