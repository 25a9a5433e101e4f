"""
Portfolio Repository
CRUD operations for portfolios
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.domain.models import Holding, Portfolio
from app.infrastructure.db.models import PortfolioModel


class PortfolioRepository:
    """Repository for Portfolio"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, portfolio: Portfolio) -> Portfolio:
        model = PortfolioModel(
            id=portfolio.id,
            name=portfolio.name,
            holdings=self._holdings_json(portfolio),
            created_at=portfolio.created_at,
            updated_at=portfolio.updated_at,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def get(self, portfolio_id: str) -> Optional[Portfolio]:
        model = await self.session.get(PortfolioModel, portfolio_id)
        return self._to_domain(model) if model else None

    async def list_all(self) -> List[Portfolio]:
        result = await self.session.execute(
            select(PortfolioModel).order_by(PortfolioModel.created_at)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def save(self, portfolio: Portfolio) -> Portfolio:
        model = await self.session.get(PortfolioModel, portfolio.id)
        if model is None:
            return await self.create(portfolio)
        model.name = portfolio.name
        model.holdings = self._holdings_json(portfolio)
        model.updated_at = portfolio.updated_at
        await self.session.flush()
        return self._to_domain(model)

    async def delete(self, portfolio_id: str) -> bool:
        model = await self.session.get(PortfolioModel, portfolio_id)
        if model is None:
            return False
        await self.session.delete(model)
        await self.session.flush()
        return True

    @staticmethod
    def _holdings_json(portfolio: Portfolio) -> list:
        return [{"ticker": h.ticker, "quantity": h.quantity} for h in portfolio.holdings]

    @staticmethod
    def _to_domain(model: PortfolioModel) -> Portfolio:
        """Convert database model to domain entity"""
        return Portfolio(
            id=model.id,
            name=model.name,
            holdings=tuple(
                Holding(ticker=h["ticker"], quantity=float(h["quantity"]))
                for h in (model.holdings or [])
            ),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
