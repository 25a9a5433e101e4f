"""
PORTFOLIO SERVICE
Holding validation and portfolio maintenance

RULES:
✅ Tickers normalized (stripped, upper-case)
✅ Adding an existing ticker adds to its quantity
✅ A quantity <= 0 removes the holding; never stored non-positive
"""

import logging
import uuid
from dataclasses import replace
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from app.domain.exceptions import PortfolioNotFoundError, ValidationError
from app.domain.models import Holding, Portfolio
from app.utils.time import now_ist_naive

logger = logging.getLogger(__name__)

RawHolding = Union[Holding, Mapping[str, object]]


class PortfolioRepository(Protocol):
    """Protocol for portfolio storage - ASYNC"""

    async def create(self, portfolio: Portfolio) -> Portfolio:
        ...

    async def get(self, portfolio_id: str) -> Optional[Portfolio]:
        ...

    async def list_all(self) -> List[Portfolio]:
        ...

    async def save(self, portfolio: Portfolio) -> Portfolio:
        ...

    async def delete(self, portfolio_id: str) -> bool:
        ...


def normalize_ticker(ticker: object) -> str:
    return str(ticker or "").strip().upper()


def validate_holdings(
    items: Iterable[RawHolding],
    min_quantity: float = 0.01,
    allow_empty: bool = False,
) -> List[Holding]:
    """
    Validate a submitted holdings list, preserving order.

    Raises:
        ValidationError: empty list (unless allow_empty), blank ticker or quantity below min_quantity
    """
    holdings: List[Holding] = []
    for position, item in enumerate(items):
        if isinstance(item, Holding):
            ticker, quantity = item.ticker, item.quantity
        else:
            ticker, quantity = item.get("ticker"), item.get("quantity")

        ticker = normalize_ticker(ticker)
        if not ticker:
            raise ValidationError(f"Holding #{position + 1}: ticker is required")
        try:
            quantity = float(quantity)
        except (TypeError, ValueError):
            raise ValidationError(f"{ticker}: quantity must be a number") from None
        if quantity < min_quantity:
            raise ValidationError(f"{ticker}: quantity must be at least {min_quantity}")
        holdings.append(Holding(ticker=ticker, quantity=quantity))

    if not holdings and not allow_empty:
        raise ValidationError("Portfolio cannot be empty")
    return holdings


def add_holding(holdings: Sequence[Holding], ticker: str, quantity: float) -> Tuple[Holding, ...]:
    """Append a holding, or add quantity to an existing one"""
    ticker = normalize_ticker(ticker)
    if quantity <= 0:
        raise ValidationError(f"{ticker}: quantity must be greater than 0")
    merged: List[Holding] = []
    found = False
    for holding in holdings:
        if holding.ticker == ticker:
            merged.append(Holding(ticker=ticker, quantity=holding.quantity + quantity))
            found = True
        else:
            merged.append(holding)
    if not found:
        merged.append(Holding(ticker=ticker, quantity=quantity))
    return tuple(merged)


def set_quantity(holdings: Sequence[Holding], ticker: str, quantity: float) -> Tuple[Holding, ...]:
    """Replace a holding's quantity; a non-positive quantity removes it"""
    ticker = normalize_ticker(ticker)
    if quantity <= 0:
        return remove_holding(holdings, ticker)
    return tuple(
        Holding(ticker=ticker, quantity=quantity) if h.ticker == ticker else h
        for h in holdings
    )


def remove_holding(holdings: Sequence[Holding], ticker: str) -> Tuple[Holding, ...]:
    ticker = normalize_ticker(ticker)
    return tuple(h for h in holdings if h.ticker != ticker)


class PortfolioService:
    """Portfolio CRUD on top of a PortfolioRepository"""

    def __init__(
        self,
        repository: PortfolioRepository,
        default_name: str = "My Portfolio",
        min_quantity: float = 0.01,
    ):
        self.repository = repository
        self.default_name = default_name
        self.min_quantity = min_quantity

    def _merge_all(self, items: Iterable[RawHolding]) -> Tuple[Holding, ...]:
        holdings: Tuple[Holding, ...] = ()
        for holding in validate_holdings(items, self.min_quantity, allow_empty=True):
            holdings = add_holding(holdings, holding.ticker, holding.quantity)
        return holdings

    async def create_portfolio(
        self,
        holdings: Iterable[RawHolding],
        name: Optional[str] = None,
    ) -> Portfolio:
        now = now_ist_naive()
        portfolio = Portfolio(
            id=str(uuid.uuid4()),
            name=(name or "").strip() or self.default_name,
            holdings=self._merge_all(holdings),
            created_at=now,
            updated_at=now,
        )
        created = await self.repository.create(portfolio)
        logger.info(f"Created portfolio {created.id} with {len(created.holdings)} holdings")
        return created

    async def get_portfolio(self, portfolio_id: str) -> Portfolio:
        portfolio = await self.repository.get(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    async def list_portfolios(self) -> List[Portfolio]:
        return await self.repository.list_all()

    async def _store(self, portfolio: Portfolio, **changes) -> Portfolio:
        updated = replace(portfolio, updated_at=now_ist_naive(), **changes)
        return await self.repository.save(updated)

    async def update_portfolio(
        self,
        portfolio_id: str,
        name: Optional[str] = None,
        holdings: Optional[Iterable[RawHolding]] = None,
    ) -> Portfolio:
        portfolio = await self.get_portfolio(portfolio_id)
        changes = {}
        if name is not None and name.strip():
            changes["name"] = name.strip()
        if holdings is not None:
            changes["holdings"] = self._merge_all(holdings)
        return await self._store(portfolio, **changes)

    async def delete_portfolio(self, portfolio_id: str) -> None:
        if not await self.repository.delete(portfolio_id):
            raise PortfolioNotFoundError(portfolio_id)

    async def add_holding(self, portfolio_id: str, ticker: str, quantity: float) -> Portfolio:
        portfolio = await self.get_portfolio(portfolio_id)
        (holding,) = validate_holdings([{"ticker": ticker, "quantity": quantity}], self.min_quantity)
        return await self._store(
            portfolio,
            holdings=add_holding(portfolio.holdings, holding.ticker, holding.quantity),
        )

    async def update_quantity(self, portfolio_id: str, ticker: str, quantity: float) -> Portfolio:
        portfolio = await self.get_portfolio(portfolio_id)
        return await self._store(
            portfolio,
            holdings=set_quantity(portfolio.holdings, ticker, quantity),
        )

    async def remove_holding(self, portfolio_id: str, ticker: str) -> Portfolio:
        portfolio = await self.get_portfolio(portfolio_id)
        return await self._store(portfolio, holdings=remove_holding(portfolio.holdings, ticker))

    async def clear_holdings(self, portfolio_id: str) -> Portfolio:
        portfolio = await self.get_portfolio(portfolio_id)
        return await self._store(portfolio, holdings=())
