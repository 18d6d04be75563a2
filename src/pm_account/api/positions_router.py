# src/pm_account/api/positions_router.py
"""Positions REST API — the caller's own holdings."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.service import AccountApplicationService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_account
from src.pm_market.application.schemas import MarketIdPath

router = APIRouter(prefix="/positions", tags=["positions"])
_service = AccountApplicationService()


@router.get("")
async def list_positions(
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.list_positions(db, account_id)
    return success_response(data.model_dump())


@router.get("/{market_id}")
async def get_position(
    market_id: MarketIdPath,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_position(db, account_id, market_id)
    return success_response(data.model_dump())
