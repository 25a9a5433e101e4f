"""
Quote Cache Repository
Latest quote per ticker (no history)
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.domain.exceptions import PersistenceError
from app.domain.models import Quote
from app.infrastructure.db.models import StockDataModel


class QuoteRepository:
    """Repository for cached quotes"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, quote: Quote) -> Quote:
        """
        Overwrite the cached quote for quote.ticker

        Raises:
            PersistenceError: if the row could not be written
        """
        try:
            result = await self.session.execute(
                select(StockDataModel).where(StockDataModel.ticker == quote.ticker)
            )
            model = result.scalar_one_or_none()
            if model is None:
                model = StockDataModel(ticker=quote.ticker)
                self.session.add(model)

            model.name = quote.name
            model.current_price = quote.current_price
            model.daily_change = quote.daily_change
            model.daily_change_percent = quote.daily_change_percent
            model.moving_average_50 = quote.moving_average_50
            model.sector = quote.sector
            model.last_updated = quote.last_updated
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not cache quote for {quote.ticker}: {exc}") from exc
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: StockDataModel) -> Quote:
        return Quote(
            ticker=model.ticker,
            name=model.name,
            current_price=model.current_price,
            daily_change=model.daily_change,
            daily_change_percent=model.daily_change_percent,
            moving_average_50=model.moving_average_50,
            sector=model.sector,
            last_updated=model.last_updated,
        )
