"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    AdviceType,
    Confidence,
    RiskLevel,

    # Entities
    AdviceItem,
    AnalysisResult,
    Holding,
    Portfolio,
    PortfolioAnalysis,
    PortfolioMetrics,
    Quote,
    StockMetrics,
    UsageLedgerEntry,
    UsageSummary,
)

__all__ = [
    # Enums
    "AdviceType",
    "Confidence",
    "RiskLevel",

    # Entities
    "AdviceItem",
    "AnalysisResult",
    "Holding",
    "Portfolio",
    "PortfolioAnalysis",
    "PortfolioMetrics",
    "Quote",
    "StockMetrics",
    "UsageLedgerEntry",
    "UsageSummary",
]
