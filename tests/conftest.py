from pathlib import Path
from typing import AsyncGenerator, Dict, Optional

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.infrastructure.db.database import Base, get_db
from app.api.dependencies import get_quote_source
from app.api.routes import analysis, health, market_data, portfolio, usage
from app.domain.models import Quote
from app.domain.services import usage_ledger
from app.domain.services.config_engine import ConfigEngine


class FakeQuoteProvider:
    """In-memory quote source; unknown tickers resolve to None"""

    def __init__(self, quotes: Optional[Dict[str, Quote]] = None):
        self.quotes = dict(quotes or {})
        self.calls = []

    def add(self, ticker: str, price: float, change_pct: float = 0.0,
            ma50: Optional[float] = None, sector: Optional[str] = None) -> None:
        self.quotes[ticker] = Quote(
            ticker=ticker,
            name=ticker,
            current_price=price,
            daily_change=round(price * change_pct / 100, 2),
            daily_change_percent=change_pct,
            moving_average_50=ma50,
            sector=sector,
        )

    async def get_quote(self, ticker: str) -> Optional[Quote]:
        self.calls.append(ticker)
        return self.quotes.get(ticker)


@pytest.fixture(autouse=True)
def fresh_ledger_locks(monkeypatch):
    # asyncio locks must not outlive the loop of the test that created them
    monkeypatch.setattr(usage_ledger, "ledger_locks", usage_ledger.KeyedLocks())


@pytest.fixture()
async def db_engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        future=True,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture()
def config_engine() -> ConfigEngine:
    config_dir = Path(__file__).resolve().parents[1] / "config"
    engine = ConfigEngine(config_dir)
    engine.load_all()
    return engine


@pytest.fixture()
def quote_provider() -> FakeQuoteProvider:
    provider = FakeQuoteProvider()
    provider.add("TCS", 3500.0, change_pct=4.0, ma50=3300.0, sector="Technology")
    provider.add("INFY", 1500.0, change_pct=0.5, ma50=1490.0, sector="Technology")
    provider.add("HDFCBANK", 1600.0, change_pct=-0.5, ma50=1610.0, sector="Financial Services")
    provider.add("^NSEI", 22000.0, change_pct=0.8)
    return provider


@pytest.fixture()
async def app(db_session, config_engine, quote_provider) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(analysis.router, prefix="/api/v1/analysis", tags=["Analysis"])
    app.include_router(usage.router, prefix="/api/v1/usage", tags=["Usage"])
    app.include_router(market_data.router, prefix="/api/v1/market", tags=["Market Data"])
    app.include_router(portfolio.router, prefix="/api/v1/portfolios", tags=["Portfolio"])

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_source] = lambda: quote_provider
    app.state.config_engine = config_engine

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
