"""
Database Models (SQLAlchemy ORM)
Portfolios, quote cache, analysis records and the usage ledger
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, Index

from app.infrastructure.db.database import Base
from app.utils.time import now_ist_naive


class PortfolioModel(Base):
    """User portfolio - holdings stored as [{ticker, quantity}]"""
    __tablename__ = "portfolio"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False, default="My Portfolio")
    holdings = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
    updated_at = Column(DateTime, nullable=False, default=now_ist_naive)


class StockDataModel(Base):
    """Latest quote per ticker - overwritten on every fetch"""
    __tablename__ = "stock_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(40), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=True)
    current_price = Column(Float, nullable=False)
    daily_change = Column(Float, nullable=False)
    daily_change_percent = Column(Float, nullable=False)
    moving_average_50 = Column(Float, nullable=True)
    sector = Column(String(100), nullable=True)
    last_updated = Column(DateTime, nullable=False, default=now_ist_naive)


class PortfolioAnalysisModel(Base):
    """Analysis result - AUDIT RECORD, insert-only"""
    __tablename__ = "portfolio_analysis"

    id = Column(String(36), primary_key=True)
    portfolio_id = Column(String(36), nullable=False, index=True)
    advice = Column(JSON, nullable=False, default=list)
    total_value = Column(Float, nullable=False)
    risk_level = Column(String(20), nullable=True)
    diversification_score = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_ist_naive)

    __table_args__ = (
        Index('ix_portfolio_analysis_latest', 'portfolio_id', 'created_at'),
    )


class UsageTrackingModel(Base):
    """Daily usage ledger - one row per YYYY-MM-DD"""
    __tablename__ = "usage_tracking"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10), nullable=False, unique=True, index=True)
    portfolio_analyses = Column(Integer, nullable=False, default=0)
    credits_used = Column(Integer, nullable=False, default=0)
    credits_remaining = Column(Integer, nullable=False, default=10)
