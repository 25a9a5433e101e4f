"""
Usage API Routes
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import List

from app.api.dependencies import get_usage_ledger
from app.api.schemas import UsageResponse
from app.config import settings
from app.domain.services.usage_ledger import UsageLedger

router = APIRouter()


class UsageSummaryResponse(BaseModel):
    today: UsageResponse
    monthly_analyses: int
    history: List[UsageResponse]


@router.get("", response_model=UsageSummaryResponse)
async def get_usage(ledger: UsageLedger = Depends(get_usage_ledger)):
    """Today's credits, this month's analyses and recent daily history"""
    summary = await ledger.get_usage_summary(settings.USAGE_HISTORY_DAYS)
    return UsageSummaryResponse(
        today=UsageResponse.from_domain(summary.today),
        monthly_analyses=summary.monthly_analyses,
        history=[UsageResponse.from_domain(e) for e in summary.history],
    )
