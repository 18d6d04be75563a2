"""pm_market REST endpoints.

POST /markets                         — create (caller becomes creator)
GET  /markets                         — list with cursor pagination
GET  /markets/{market_id}             — detail with current marginal prices
GET  /markets/{market_id}/quote       — cost of a hypothetical buy
POST /markets/{market_id}/trades      — buy YES/NO shares
POST /markets/{market_id}/claim       — collect payout after resolution
GET  /markets/{market_id}/events      — observation stream
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.enums import Side
from src.pm_common.fixed_point import MAX_NUMERIC
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_account
from src.pm_market.application.schemas import CreateMarketRequest, MarketIdPath, TradeRequest
from src.pm_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.post("")
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_market(
        db, account_id, body.question, body.resolution_time, body.resolver
    )
    return success_response(result.model_dump(), request)


@router.get("")
async def list_markets(
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(db, cursor, limit)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: MarketIdPath,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market(db, market_id)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}/quote")
async def quote(
    market_id: MarketIdPath,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    side: Side = Query(...),
    amount: int = Query(..., ge=0, le=MAX_NUMERIC),
) -> ApiResponse:
    result = await _service.quote(db, market_id, side, amount)
    return success_response(result.model_dump(), request)


@router.post("/{market_id}/trades")
async def trade(
    market_id: MarketIdPath,
    body: TradeRequest,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.trade(
        db, market_id, account_id, body.side, body.amount, body.max_cost
    )
    return success_response(result.model_dump(), request)


@router.post("/{market_id}/claim")
async def claim(
    market_id: MarketIdPath,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.claim(db, market_id, account_id)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}/events")
async def list_events(
    market_id: MarketIdPath,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=500),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_events(db, market_id, cursor, limit)
    return success_response(result.model_dump(), request)
