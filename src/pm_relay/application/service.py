"""RelayApplicationService — transport-facing wrapper around CrossDomainRelay.

A redelivered message is a normal event for an at-least-once transport, so
DuplicateMessageError is answered as a successful no-op instead of an error
that would make the sender retry forever.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.errors import DuplicateMessageError, MalformedPayloadError
from src.pm_market.application.service import get_market_engine
from src.pm_relay.application.schemas import RemoteMessageRequest, RemoteMessageResponse
from src.pm_relay.domain.channel import AuthenticatedChannel
from src.pm_relay.domain.relay import CrossDomainRelay
from src.pm_relay.infrastructure.persistence import RelayMessageRepository

logger = logging.getLogger(__name__)

_relay: CrossDomainRelay | None = None


def get_relay() -> CrossDomainRelay:
    global _relay  # noqa: PLW0603
    if _relay is None:
        _relay = CrossDomainRelay(
            engine=get_market_engine(),
            messages=RelayMessageRepository(),
            trusted_channels=settings.RELAY_TRUSTED_CHANNELS,
            trusted_remotes=settings.RELAY_TRUSTED_REMOTES,
            max_cost=settings.RELAY_MAX_COST,
        )
    return _relay


class RelayApplicationService:
    def __init__(self, relay: CrossDomainRelay | None = None) -> None:
        self._relay = relay or get_relay()

    async def deliver(
        self, db: AsyncSession, channel: AuthenticatedChannel, body: RemoteMessageRequest
    ) -> RemoteMessageResponse:
        try:
            payload = bytes.fromhex(body.payload_hex)
        except ValueError:
            raise MalformedPayloadError("payload_hex is not valid hex") from None

        try:
            result = await self._relay.on_remote_message(
                db, channel, body.source_domain_id, body.source_address, body.nonce, payload
            )
            await db.commit()
        except DuplicateMessageError:
            await db.rollback()
            return RemoteMessageResponse(
                applied=False,
                duplicate=True,
                source_domain_id=body.source_domain_id,
                nonce=body.nonce,
            )
        except Exception:
            await db.rollback()
            raise
        return RemoteMessageResponse.from_result(result)
