from datetime import datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.domain.exceptions import PersistenceError
from app.domain.models import (
    AdviceItem,
    AdviceType,
    Confidence,
    Holding,
    Portfolio,
    PortfolioAnalysis,
    Quote,
    UsageLedgerEntry,
)
from app.domain.services.usage_ledger import KeyedLocks, UsageLedger
from app.infrastructure.db.models import StockDataModel
from app.infrastructure.db.repositories.analysis_repository import AnalysisRepository
from app.infrastructure.db.repositories.portfolio_repository import PortfolioRepository
from app.infrastructure.db.repositories.quote_repository import QuoteRepository
from app.infrastructure.db.repositories.usage_repository import UsageRepository


@pytest.mark.asyncio
@pytest.mark.integration
async def test_usage_repository_upserts_by_date(db_session):
    repo = UsageRepository(db_session)

    await repo.save(UsageLedgerEntry("2026-03-14", 2, 2, 8))
    await repo.save(UsageLedgerEntry("2026-03-15", 0, 0, 10))
    await repo.save(UsageLedgerEntry("2026-03-15", 1, 1, 9))

    entry = await repo.get_for_date("2026-03-15")
    assert entry == UsageLedgerEntry("2026-03-15", 1, 1, 9)
    assert await repo.get_for_date("2026-01-01") is None

    history = await repo.get_history()
    assert [e.date for e in history] == ["2026-03-15", "2026-03-14"]
    assert len(await repo.get_history(limit=1)) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ledger_on_sqlite(db_session):
    ledger = UsageLedger(
        UsageRepository(db_session),
        daily_credits=10,
        clock=lambda: datetime(2026, 3, 15).date(),
        locks=KeyedLocks(),
    )

    await ledger.increment_usage()
    await ledger.increment_usage()

    today = await ledger.get_today_usage()
    assert today.analyses_performed == 2
    assert today.credits_remaining == 8


@pytest.mark.asyncio
@pytest.mark.integration
async def test_quote_repository_overwrites(db_session):
    repo = QuoteRepository(db_session)

    await repo.upsert(Quote(ticker="TCS", current_price=3400.0, daily_change=0.0, daily_change_percent=0.0))
    await repo.upsert(Quote(
        ticker="TCS",
        current_price=3500.0,
        daily_change=100.0,
        daily_change_percent=2.94,
        moving_average_50=3300.0,
        sector="Technology",
    ))

    rows = (await db_session.execute(select(StockDataModel))).scalars().all()
    assert len(rows) == 1
    assert rows[0].current_price == 3500.0
    assert rows[0].sector == "Technology"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_quote_repository_wraps_database_errors(db_session, monkeypatch):
    async def broken_flush(*args, **kwargs):
        raise OperationalError("UPDATE stock_data", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "flush", broken_flush)

    with pytest.raises(PersistenceError, match="TCS"):
        await QuoteRepository(db_session).upsert(
            Quote(ticker="TCS", current_price=3500.0, daily_change=0.0, daily_change_percent=0.0)
        )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_analysis_repository_latest(db_session):
    repo = AnalysisRepository(db_session)
    base = datetime(2026, 3, 15, 10, 0, 0)
    advice = (AdviceItem(type=AdviceType.SELL, ticker="TCS", message="book profits",
                         confidence=Confidence.HIGH, icon="📈"),)

    for i in range(3):
        await repo.create(PortfolioAnalysis(
            id=f"a{i}",
            portfolio_id="p1",
            advice=advice,
            total_value=1000.0 * (i + 1),
            risk_level="High",
            diversification_score=0.0,
            created_at=base + timedelta(minutes=i),
        ))
    await db_session.commit()

    latest = await repo.get_latest("p1")
    assert latest.id == "a2"
    assert latest.advice == advice
    assert await repo.get_latest("other") is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_portfolio_repository_roundtrip(db_session):
    repo = PortfolioRepository(db_session)
    now = datetime(2026, 3, 15, 10, 0, 0)
    portfolio = Portfolio(
        id="p1",
        name="Core",
        holdings=(Holding("TCS", 10), Holding("INFY", 2.5)),
        created_at=now,
        updated_at=now,
    )

    await repo.create(portfolio)
    fetched = await repo.get("p1")
    assert fetched.holdings == portfolio.holdings

    renamed = Portfolio(id="p1", name="Renamed", holdings=(), created_at=now, updated_at=now)
    saved = await repo.save(renamed)
    assert saved.name == "Renamed"
    assert saved.holdings == ()

    assert len(await repo.list_all()) == 1
    assert await repo.delete("p1") is True
    assert await repo.delete("p1") is False
