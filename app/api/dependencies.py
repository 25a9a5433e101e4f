"""
FastAPI dependencies
Build domain services on top of the request-scoped DB session
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.domain.services.advice_engine import AdviceEngine
from app.domain.services.analysis_service import AnalysisOrchestrator
from app.domain.services.config_engine import ConfigEngine, load_config_engine
from app.domain.services.portfolio_service import PortfolioService
from app.domain.services.usage_ledger import UsageLedger
from app.infrastructure.db.database import get_db
from app.infrastructure.db.repositories.analysis_repository import AnalysisRepository
from app.infrastructure.db.repositories.portfolio_repository import PortfolioRepository
from app.infrastructure.db.repositories.quote_repository import QuoteRepository
from app.infrastructure.db.repositories.usage_repository import UsageRepository
from app.infrastructure.market_data.provider_factory import get_quote_provider
from app.infrastructure.market_data.types import QuoteProvider


def get_config_engine(request: Request) -> ConfigEngine:
    engine = getattr(request.app.state, "config_engine", None)
    if engine is None:
        engine = load_config_engine()
        request.app.state.config_engine = engine
    return engine


def get_quote_source(
    request: Request,
    config_engine: ConfigEngine = Depends(get_config_engine),
) -> QuoteProvider:
    provider = getattr(request.app.state, "quote_provider", None)
    if provider is None:
        provider = get_quote_provider(config_engine)
        request.app.state.quote_provider = provider
    return provider


def get_usage_ledger(db: AsyncSession = Depends(get_db)) -> UsageLedger:
    return UsageLedger(
        UsageRepository(db),
        daily_credits=settings.DAILY_CREDIT_LIMIT,
        timezone_name=settings.TIMEZONE,
    )


def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    ledger: UsageLedger = Depends(get_usage_ledger),
    quote_source: QuoteProvider = Depends(get_quote_source),
    config_engine: ConfigEngine = Depends(get_config_engine),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(
        ledger=ledger,
        quote_source=quote_source,
        quote_repository=QuoteRepository(db),
        analysis_repository=AnalysisRepository(db),
        advice_engine=AdviceEngine(config_engine.advice_rules),
        credits_per_analysis=settings.CREDITS_PER_ANALYSIS,
        min_quantity=config_engine.portfolio.min_quantity,
    )


def get_portfolio_service(
    db: AsyncSession = Depends(get_db),
    config_engine: ConfigEngine = Depends(get_config_engine),
) -> PortfolioService:
    return PortfolioService(
        PortfolioRepository(db),
        default_name=config_engine.portfolio.default_name,
        min_quantity=config_engine.portfolio.min_quantity,
    )
