"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from app.domain.exceptions import ValidationError
from app.utils.time import now_ist_naive


class AdviceType(str, Enum):
    """Kind of action an advice item suggests"""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    DIVERSIFY = "DIVERSIFY"


class Confidence(str, Enum):
    """Ordinal confidence label, used only for ranking"""
    HIGH = "High"
    MED = "Med"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    Confidence.HIGH: 3,
    Confidence.MED: 2,
    Confidence.LOW: 1,
}


class RiskLevel(str, Enum):
    """Coarse portfolio risk label"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class Holding:
    """A (ticker, quantity) position - Immutable"""
    ticker: str
    quantity: float

    def __post_init__(self):
        if not self.ticker or not self.ticker.strip():
            raise ValidationError("Ticker is required")
        if self.quantity <= 0:
            raise ValidationError(
                f"Quantity for {self.ticker} must be greater than 0"
            )


@dataclass(frozen=True)
class Quote:
    """Market data snapshot for a ticker - Immutable"""
    ticker: str
    current_price: float
    daily_change: float
    daily_change_percent: float
    name: Optional[str] = None
    moving_average_50: Optional[float] = None
    sector: Optional[str] = None
    last_updated: datetime = field(default_factory=now_ist_naive)

    def __post_init__(self):
        if self.current_price < 0:
            raise ValueError("Current price cannot be negative")


@dataclass(frozen=True)
class StockMetrics:
    """Per-holding metrics snapshot used by the advice rules"""
    ticker: str
    daily_change_percent: float
    current_price: float
    moving_average_50: Optional[float]
    value: float
    weightage: float
    sector: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.ticker

    @property
    def price_vs_ma(self) -> float:
        """Percent distance of price from the 50-day MA (0 when MA unknown)"""
        if not self.moving_average_50:
            return 0.0
        return (
            (self.current_price - self.moving_average_50)
            / self.moving_average_50
            * 100
        )


@dataclass(frozen=True)
class PortfolioMetrics:
    """Aggregate portfolio metrics - derived, never persisted"""
    total_value: float
    stocks: Dict[str, StockMetrics]
    sector_distribution: Dict[str, float]

    @property
    def dominant_sector(self) -> Optional[Tuple[str, float]]:
        """Sector holding the most value; first seen wins ties"""
        if not self.sector_distribution:
            return None
        return max(self.sector_distribution.items(), key=lambda item: item[1])

    @property
    def sector_concentration(self) -> float:
        dominant = self.dominant_sector
        if dominant is None or self.total_value <= 0:
            return 0.0
        return dominant[1] / self.total_value

    @property
    def diversification_score(self) -> float:
        """1 - Herfindahl index of sector shares"""
        if self.total_value <= 0:
            return 0.0
        hhi = sum(
            (value / self.total_value) ** 2
            for value in self.sector_distribution.values()
        )
        return round(1 - hhi, 2)


@dataclass(frozen=True)
class AdviceItem:
    """One advisory statement - Immutable"""
    type: AdviceType
    message: str
    confidence: Confidence
    icon: str
    ticker: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "type": self.type.value,
            "ticker": self.ticker,
            "message": self.message,
            "confidence": self.confidence.value,
            "icon": self.icon,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "AdviceItem":
        return cls(
            type=AdviceType(data["type"]),
            message=data["message"],
            confidence=Confidence(data["confidence"]),
            icon=data["icon"],
            ticker=data.get("ticker"),
        )


@dataclass(frozen=True)
class PortfolioAnalysis:
    """Result of one analysis run - created once, never mutated"""
    id: str
    portfolio_id: str
    advice: Tuple[AdviceItem, ...]
    total_value: float
    risk_level: str
    diversification_score: float
    created_at: datetime


@dataclass(frozen=True)
class UsageLedgerEntry:
    """Daily usage counter - one per calendar date"""
    date: str
    analyses_performed: int
    credits_used: int
    credits_remaining: int

    @property
    def is_exhausted(self) -> bool:
        return self.credits_remaining <= 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "date": self.date,
            "analyses_performed": self.analyses_performed,
            "credits_used": self.credits_used,
            "credits_remaining": self.credits_remaining,
        }


@dataclass(frozen=True)
class UsageSummary:
    """Today's entry plus monthly rollup and recent history"""
    today: UsageLedgerEntry
    monthly_analyses: int
    history: Tuple[UsageLedgerEntry, ...]


@dataclass(frozen=True)
class Portfolio:
    """Named list of holdings"""
    id: str
    name: str
    holdings: Tuple[Holding, ...]
    created_at: datetime
    updated_at: datetime

    @property
    def tickers(self) -> Tuple[str, ...]:
        return tuple(h.ticker for h in self.holdings)


@dataclass(frozen=True)
class AnalysisResult:
    """Everything an analysis request returns to the caller"""
    analysis: PortfolioAnalysis
    quotes: Tuple[Quote, ...]
    usage: UsageLedgerEntry
    failed_tickers: Tuple[str, ...] = ()
