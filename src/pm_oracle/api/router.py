# src/pm_oracle/api/router.py
"""Oracle REST API — outcome reporting by a market's designated resolver."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.enums import Side
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_account
from src.pm_market.application.schemas import MarketIdPath
from src.pm_oracle.application.service import OracleApplicationService

router = APIRouter(prefix="/oracle", tags=["oracle"])
_service = OracleApplicationService()


class ResolveRequest(BaseModel):
    outcome: Side


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: MarketIdPath,
    body: ResolveRequest,
    request: Request,
    account_id: Annotated[str, Depends(get_current_account)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.resolve_market(db, market_id, body.outcome, account_id)
    return success_response(result, request)
