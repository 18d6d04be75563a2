"""Relay REST API — inbound cross-domain messages.

POST /relay/messages — requires a bearer token of type "channel".
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import require_message_channel
from src.pm_relay.application.schemas import RemoteMessageRequest
from src.pm_relay.application.service import RelayApplicationService
from src.pm_relay.domain.channel import AuthenticatedChannel

router = APIRouter(prefix="/relay", tags=["relay"])
_service = RelayApplicationService()


@router.post("/messages")
async def deliver_message(
    body: RemoteMessageRequest,
    request: Request,
    channel: Annotated[AuthenticatedChannel, Depends(require_message_channel)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.deliver(db, channel, body)
    return success_response(result.model_dump(), request)
