"""
Portfolio API Routes
Named portfolios and their holdings
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional

from app.api.dependencies import get_portfolio_service
from app.api.schemas import PortfolioResponse, StockInput
from app.domain.exceptions import PortfolioNotFoundError, ValidationError
from app.domain.services.portfolio_service import PortfolioService

router = APIRouter()


class PortfolioCreate(BaseModel):
    name: Optional[str] = None
    holdings: List[StockInput] = Field(default_factory=list)


class PortfolioUpdate(BaseModel):
    name: Optional[str] = None
    holdings: Optional[List[StockInput]] = None


class HoldingAdd(BaseModel):
    ticker: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)


class QuantityUpdate(BaseModel):
    # zero or negative removes the holding
    quantity: float


def _not_found(e: PortfolioNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=PortfolioResponse, status_code=201)
async def create_portfolio(
    payload: PortfolioCreate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        portfolio = await service.create_portfolio(
            [h.model_dump() for h in payload.holdings],
            name=payload.name,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PortfolioResponse.from_domain(portfolio)


@router.get("", response_model=List[PortfolioResponse])
async def list_portfolios(service: PortfolioService = Depends(get_portfolio_service)):
    return [PortfolioResponse.from_domain(p) for p in await service.list_portfolios()]


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
async def get_portfolio(
    portfolio_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        return PortfolioResponse.from_domain(await service.get_portfolio(portfolio_id))
    except PortfolioNotFoundError as e:
        raise _not_found(e)


@router.put("/{portfolio_id}", response_model=PortfolioResponse)
async def update_portfolio(
    portfolio_id: str,
    payload: PortfolioUpdate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    holdings = None
    if payload.holdings is not None:
        holdings = [h.model_dump() for h in payload.holdings]
    try:
        portfolio = await service.update_portfolio(portfolio_id, name=payload.name, holdings=holdings)
    except PortfolioNotFoundError as e:
        raise _not_found(e)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PortfolioResponse.from_domain(portfolio)


@router.delete("/{portfolio_id}", status_code=204)
async def delete_portfolio(
    portfolio_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        await service.delete_portfolio(portfolio_id)
    except PortfolioNotFoundError as e:
        raise _not_found(e)


@router.post("/{portfolio_id}/holdings", response_model=PortfolioResponse)
async def add_holding(
    portfolio_id: str,
    payload: HoldingAdd,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Add a holding; an existing ticker has its quantity increased."""
    try:
        portfolio = await service.add_holding(portfolio_id, payload.ticker, payload.quantity)
    except PortfolioNotFoundError as e:
        raise _not_found(e)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PortfolioResponse.from_domain(portfolio)


@router.patch("/{portfolio_id}/holdings/{ticker}", response_model=PortfolioResponse)
async def update_holding_quantity(
    portfolio_id: str,
    ticker: str,
    payload: QuantityUpdate,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        portfolio = await service.update_quantity(portfolio_id, ticker, payload.quantity)
    except PortfolioNotFoundError as e:
        raise _not_found(e)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PortfolioResponse.from_domain(portfolio)


@router.delete("/{portfolio_id}/holdings/{ticker}", response_model=PortfolioResponse)
async def remove_holding(
    portfolio_id: str,
    ticker: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        portfolio = await service.remove_holding(portfolio_id, ticker)
    except PortfolioNotFoundError as e:
        raise _not_found(e)
    return PortfolioResponse.from_domain(portfolio)


@router.delete("/{portfolio_id}/holdings", response_model=PortfolioResponse)
async def clear_holdings(
    portfolio_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        portfolio = await service.clear_holdings(portfolio_id)
    except PortfolioNotFoundError as e:
        raise _not_found(e)
    return PortfolioResponse.from_domain(portfolio)
