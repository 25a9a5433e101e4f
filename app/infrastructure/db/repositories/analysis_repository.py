"""
Portfolio Analysis Repository
Insert-only analysis records
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional

from app.domain.exceptions import PersistenceError
from app.domain.models import AdviceItem, PortfolioAnalysis
from app.infrastructure.db.models import PortfolioAnalysisModel


class AnalysisRepository:
    """Repository for PortfolioAnalysis"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, analysis: PortfolioAnalysis) -> PortfolioAnalysis:
        """
        Store a new analysis record

        Raises:
            PersistenceError: if the row could not be written
        """
        model = PortfolioAnalysisModel(
            id=analysis.id,
            portfolio_id=analysis.portfolio_id,
            advice=[item.to_dict() for item in analysis.advice],
            total_value=analysis.total_value,
            risk_level=analysis.risk_level,
            diversification_score=analysis.diversification_score,
            created_at=analysis.created_at,
        )
        try:
            self.session.add(model)
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not store analysis {analysis.id}: {exc}") from exc
        return self._to_domain(model)

    async def get_latest(self, portfolio_id: str) -> Optional[PortfolioAnalysis]:
        """Most recent analysis by creation time"""
        result = await self.session.execute(
            select(PortfolioAnalysisModel)
            .where(PortfolioAnalysisModel.portfolio_id == portfolio_id)
            .order_by(PortfolioAnalysisModel.created_at.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    @staticmethod
    def _to_domain(model: PortfolioAnalysisModel) -> PortfolioAnalysis:
        """Convert database model to domain entity"""
        return PortfolioAnalysis(
            id=model.id,
            portfolio_id=model.portfolio_id,
            advice=tuple(AdviceItem.from_dict(a) for a in (model.advice or [])),
            total_value=model.total_value,
            risk_level=model.risk_level,
            diversification_score=model.diversification_score,
            created_at=model.created_at,
        )
