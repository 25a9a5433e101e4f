"""
Usage Ledger Repository
Persistence for the daily usage counter
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from app.domain.exceptions import PersistenceError
from app.domain.models import UsageLedgerEntry
from app.infrastructure.db.models import UsageTrackingModel


class UsageRepository:
    """Repository for UsageLedgerEntry"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_model(self, key: str) -> Optional[UsageTrackingModel]:
        result = await self.session.execute(
            select(UsageTrackingModel).where(UsageTrackingModel.date == key)
        )
        return result.scalar_one_or_none()

    async def get_for_date(self, key: str) -> Optional[UsageLedgerEntry]:
        model = await self._get_model(key)
        return self._to_domain(model) if model else None

    async def save(self, entry: UsageLedgerEntry) -> UsageLedgerEntry:
        """
        Insert or update the row for entry.date and commit.

        Committed immediately so a debit is visible to the next request
        as soon as the ledger lock is released.
        """
        try:
            model = await self._get_model(entry.date)
            if model is None:
                model = UsageTrackingModel(date=entry.date)
                self.session.add(model)
            model.portfolio_analyses = entry.analyses_performed
            model.credits_used = entry.credits_used
            model.credits_remaining = entry.credits_remaining
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Could not save usage for {entry.date}: {exc}") from exc
        return self._to_domain(model)

    async def get_history(self, limit: Optional[int] = None) -> List[UsageLedgerEntry]:
        query = select(UsageTrackingModel).order_by(UsageTrackingModel.date.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [self._to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _to_domain(model: UsageTrackingModel) -> UsageLedgerEntry:
        """Convert database model to domain entity"""
        return UsageLedgerEntry(
            date=model.date,
            analyses_performed=model.portfolio_analyses,
            credits_used=model.credits_used,
            credits_remaining=model.credits_remaining,
        )
