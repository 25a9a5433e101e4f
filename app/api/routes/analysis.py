"""
Analysis API Routes
Credit-gated portfolio analysis
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from typing import List, Optional
import logging

from app.api.dependencies import get_orchestrator
from app.api.schemas import AnalysisResponse, QuoteResponse, StockInput, UsageResponse
from app.domain.exceptions import PersistenceError, QuotaExceededError, ValidationError
from app.domain.services.analysis_service import AnalysisOrchestrator, DEFAULT_PORTFOLIO_ID

logger = logging.getLogger(__name__)
router = APIRouter()

QUOTA_MESSAGE = "No credits remaining. Please upgrade your plan."


class AnalysisRequest(BaseModel):
    stocks: List[StockInput]
    portfolio_id: Optional[str] = None


class AnalysisRunResponse(BaseModel):
    analysis: AnalysisResponse
    stock_data: List[QuoteResponse]
    usage: UsageResponse
    failed_tickers: List[str]


def quota_exceeded_detail(exc: QuotaExceededError) -> dict:
    return {
        "message": QUOTA_MESSAGE,
        "code": "QUOTA_EXCEEDED",
        "usage": exc.usage.to_dict(),
    }


@router.post("", response_model=AnalysisRunResponse)
async def run_analysis(
    request: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """
    Analyze holdings and debit one analysis worth of credits.

    403 when today's credits are used up, 400 on invalid holdings.
    """
    try:
        result = await orchestrator.analyze(
            [s.model_dump() for s in request.stocks],
            portfolio_id=request.portfolio_id or DEFAULT_PORTFOLIO_ID,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except QuotaExceededError as e:
        raise HTTPException(status_code=403, detail=quota_exceeded_detail(e))
    except PersistenceError as e:
        logger.error(f"❌ Failed to store analysis: {e}")
        raise HTTPException(status_code=500, detail="Failed to analyze portfolio")

    return AnalysisRunResponse(
        analysis=AnalysisResponse.from_domain(result.analysis),
        stock_data=[QuoteResponse.from_domain(q) for q in result.quotes],
        usage=UsageResponse.from_domain(result.usage),
        failed_tickers=list(result.failed_tickers),
    )


@router.get("/latest", response_model=AnalysisResponse)
async def latest_analysis(
    portfolio_id: str = Query(DEFAULT_PORTFOLIO_ID),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Most recent analysis for a portfolio"""
    analysis = await orchestrator.get_latest_analysis(portfolio_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail=f"No analysis found for {portfolio_id}")
    return AnalysisResponse.from_domain(analysis)
