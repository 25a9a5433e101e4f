"""
Unit Tests for PortfolioService and holding helpers
"""

from typing import Dict, List, Optional

import pytest

from app.domain.exceptions import PortfolioNotFoundError, ValidationError
from app.domain.models import Holding, Portfolio
from app.domain.services.portfolio_service import (
    PortfolioService,
    add_holding,
    remove_holding,
    set_quantity,
    validate_holdings,
)


class MockPortfolioRepository:
    """Mock repository for testing"""

    def __init__(self):
        self.portfolios: Dict[str, Portfolio] = {}

    async def create(self, portfolio: Portfolio) -> Portfolio:
        self.portfolios[portfolio.id] = portfolio
        return portfolio

    async def get(self, portfolio_id: str) -> Optional[Portfolio]:
        return self.portfolios.get(portfolio_id)

    async def list_all(self) -> List[Portfolio]:
        return list(self.portfolios.values())

    async def save(self, portfolio: Portfolio) -> Portfolio:
        self.portfolios[portfolio.id] = portfolio
        return portfolio

    async def delete(self, portfolio_id: str) -> bool:
        return self.portfolios.pop(portfolio_id, None) is not None


@pytest.fixture
def service():
    return PortfolioService(MockPortfolioRepository(), default_name="My Portfolio")


def test_validate_holdings_normalizes_tickers():
    holdings = validate_holdings([{"ticker": " tcs ", "quantity": "10"}, Holding("INFY", 2)])
    assert holdings == [Holding("TCS", 10.0), Holding("INFY", 2)]


@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"ticker": "", "quantity": 1}],
        [{"ticker": "TCS", "quantity": 0}],
        [{"ticker": "TCS", "quantity": 0.001}],
        [{"ticker": "TCS", "quantity": "lots"}],
    ],
)
def test_validate_holdings_rejects(items):
    with pytest.raises(ValidationError):
        validate_holdings(items)


def test_add_holding_merges_existing_ticker():
    holdings = (Holding("TCS", 10),)
    merged = add_holding(holdings, "tcs", 5)
    assert merged == (Holding("TCS", 15),)
    assert add_holding(merged, "INFY", 1)[-1] == Holding("INFY", 1)


def test_set_quantity_non_positive_removes():
    holdings = (Holding("TCS", 10), Holding("INFY", 2))
    assert set_quantity(holdings, "TCS", 3) == (Holding("TCS", 3), Holding("INFY", 2))
    assert set_quantity(holdings, "TCS", 0) == (Holding("INFY", 2),)
    assert remove_holding(holdings, "INFY") == (Holding("TCS", 10),)


@pytest.mark.asyncio
async def test_create_portfolio_defaults_name_and_merges(service):
    portfolio = await service.create_portfolio(
        [{"ticker": "TCS", "quantity": 10}, {"ticker": "tcs", "quantity": 5}]
    )

    assert portfolio.name == "My Portfolio"
    assert portfolio.holdings == (Holding("TCS", 15),)


@pytest.mark.asyncio
async def test_create_empty_portfolio_allowed(service):
    portfolio = await service.create_portfolio([], name="Watchlist")
    assert portfolio.name == "Watchlist"
    assert portfolio.holdings == ()


@pytest.mark.asyncio
async def test_holding_lifecycle(service):
    portfolio = await service.create_portfolio([{"ticker": "TCS", "quantity": 10}])

    portfolio = await service.add_holding(portfolio.id, "INFY", 4)
    assert portfolio.tickers == ("TCS", "INFY")

    portfolio = await service.update_quantity(portfolio.id, "TCS", -1)
    assert portfolio.tickers == ("INFY",)

    portfolio = await service.remove_holding(portfolio.id, "INFY")
    assert portfolio.holdings == ()


@pytest.mark.asyncio
async def test_update_portfolio_replaces_holdings(service):
    portfolio = await service.create_portfolio([{"ticker": "TCS", "quantity": 10}])

    updated = await service.update_portfolio(
        portfolio.id, name="Renamed", holdings=[{"ticker": "HDFCBANK", "quantity": 2}]
    )

    assert updated.name == "Renamed"
    assert updated.tickers == ("HDFCBANK",)
    assert updated.updated_at >= portfolio.updated_at


@pytest.mark.asyncio
async def test_missing_portfolio_raises(service):
    with pytest.raises(PortfolioNotFoundError):
        await service.get_portfolio("missing")
    with pytest.raises(PortfolioNotFoundError):
        await service.delete_portfolio("missing")


@pytest.mark.asyncio
async def test_clear_holdings(service):
    portfolio = await service.create_portfolio([{"ticker": "TCS", "quantity": 10}])
    cleared = await service.clear_holdings(portfolio.id)
    assert cleared.holdings == ()
    assert len(await service.list_portfolios()) == 1
