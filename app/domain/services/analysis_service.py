"""
ANALYSIS ORCHESTRATOR
Sequences one portfolio analysis request

FLOW:
1. Validate holdings            (ValidationError, no side effects)
2. Check today's usage          (QuotaExceededError, no side effects)
3. Resolve quotes per ticker    (failures absorbed, ticker dropped)
4. Run advice engine
5. Under today's ledger lock: re-check credits (QuotaExceededError),
   persist analysis record (PersistenceError), increment usage
6. Return analysis + quotes + usage

RULES:
❌ No retries for failed quotes
❌ No rollback of the usage debit once committed
✅ Quotes matched back to holdings by index, not arrival order
"""

import asyncio
import logging
import uuid
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from app.domain.exceptions import QuotaExceededError, QuoteUnavailableError
from app.domain.models import AnalysisResult, PortfolioAnalysis, Quote
from app.domain.services.advice_engine import AdviceEngine
from app.domain.services.portfolio_service import RawHolding, validate_holdings
from app.domain.services.usage_ledger import UsageLedger
from app.utils.time import now_ist_naive

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO_ID = "default"


class QuoteSource(Protocol):
    """External quote collaborator"""

    async def get_quote(self, ticker: str) -> Optional[Quote]:
        ...


class QuoteRepository(Protocol):
    """Protocol for the quote cache - ASYNC"""

    async def upsert(self, quote: Quote) -> Quote:
        """Store quote, replacing any previous entry for the ticker"""
        ...


class AnalysisRepository(Protocol):
    """Protocol for analysis records - ASYNC"""

    async def create(self, analysis: PortfolioAnalysis) -> PortfolioAnalysis:
        ...

    async def get_latest(self, portfolio_id: str) -> Optional[PortfolioAnalysis]:
        ...


class AnalysisOrchestrator:
    """
    Analysis Orchestrator
    Composes ledger, quote source, advice engine and stores
    """

    def __init__(
        self,
        ledger: UsageLedger,
        quote_source: QuoteSource,
        quote_repository: QuoteRepository,
        analysis_repository: AnalysisRepository,
        advice_engine: Optional[AdviceEngine] = None,
        credits_per_analysis: int = 1,
        min_quantity: float = 0.01,
    ):
        self.ledger = ledger
        self.quote_source = quote_source
        self.quote_repository = quote_repository
        self.analysis_repository = analysis_repository
        self.advice_engine = advice_engine or AdviceEngine()
        self.credits_per_analysis = credits_per_analysis
        self.min_quantity = min_quantity

    async def _fetch_one(self, ticker: str) -> Quote:
        try:
            quote = await self.quote_source.get_quote(ticker)
        except Exception as exc:
            raise QuoteUnavailableError(ticker, str(exc)) from exc
        if quote is None:
            raise QuoteUnavailableError(ticker)
        return quote

    async def resolve_quotes(
        self,
        tickers: Sequence[str],
    ) -> Tuple[List[Optional[Quote]], List[str]]:
        """
        Fetch quotes concurrently and cache each resolved one.

        Returns:
            (quotes parallel-indexed to tickers with None for failures,
             failed tickers in input order)
        """
        results = await asyncio.gather(
            *(self._fetch_one(ticker) for ticker in tickers),
            return_exceptions=True,
        )

        quotes: List[Optional[Quote]] = []
        failed: List[str] = []
        for ticker, result in zip(tickers, results):
            if isinstance(result, QuoteUnavailableError):
                logger.warning(f"⚠️ {result}")
                quotes.append(None)
                failed.append(ticker)
                continue
            if isinstance(result, BaseException):
                raise result
            quotes.append(await self.quote_repository.upsert(result))
        return quotes, failed

    async def analyze(
        self,
        holdings: Iterable[RawHolding],
        portfolio_id: str = DEFAULT_PORTFOLIO_ID,
    ) -> AnalysisResult:
        """
        Run one analysis and debit today's credits.

        Raises:
            ValidationError: holdings empty or malformed
            QuotaExceededError: no credits left today
            PersistenceError: analysis record could not be stored
        """
        holdings = validate_holdings(holdings, self.min_quantity)

        usage = await self.ledger.get_today_usage()
        if usage.is_exhausted:
            logger.warning(
                f"🚫 Analysis rejected: no credits remaining for {usage.date} "
                f"({usage.analyses_performed} analyses today)"
            )
            raise QuotaExceededError(usage)

        quotes, failed = await self.resolve_quotes([h.ticker for h in holdings])

        resolved_quotes = [quote for quote in quotes if quote is not None]

        # unresolved holdings stay in place so quotes line up by index
        engine = self.advice_engine
        advice = engine.generate_advice(holdings, quotes)
        metrics = engine.compute_metrics(holdings, quotes)

        record = PortfolioAnalysis(
            id=str(uuid.uuid4()),
            portfolio_id=portfolio_id,
            advice=tuple(advice),
            total_value=metrics.total_value,
            risk_level=engine.assess_risk(metrics).value,
            diversification_score=metrics.diversification_score,
            created_at=now_ist_naive(),
        )

        try:
            analysis, updated_usage = await self.ledger.charge(
                lambda: self.analysis_repository.create(record),
                self.credits_per_analysis,
            )
        except QuotaExceededError as exc:
            logger.warning(f"🚫 Analysis rejected: last credit for {exc.usage.date} taken concurrently")
            raise

        logger.info(
            f"✅ Analysis {analysis.id} for {portfolio_id}: "
            f"{len(resolved_quotes)}/{len(holdings)} tickers resolved, "
            f"{len(advice)} advice items, "
            f"{updated_usage.credits_remaining} credits left"
        )

        return AnalysisResult(
            analysis=analysis,
            quotes=tuple(resolved_quotes),
            usage=updated_usage,
            failed_tickers=tuple(failed),
        )

    async def get_latest_analysis(
        self,
        portfolio_id: str = DEFAULT_PORTFOLIO_ID,
    ) -> Optional[PortfolioAnalysis]:
        return await self.analysis_repository.get_latest(portfolio_id)
