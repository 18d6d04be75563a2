"""CrossDomainRelay — replays remote bets as ordinary trades, exactly once.

Checks, in order:
  1. the message came through a trusted, authenticated channel (and, when a
     trusted remote is configured for the source domain, from that address)
  2. the payload decodes to (market_id, account, amount, side)
  3. (source_domain_id, nonce) has not been applied before

The nonce record and the trade share one savepoint. If the trade fails
(market expired, insufficient funds, ...) the nonce is rolled back too, so
the sender can redeliver once the cause is fixed.
"""
import logging
from collections.abc import Iterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import DuplicateMessageError, UntrustedChannelError
from src.pm_market.engine.engine import MarketEngine
from src.pm_relay.domain.channel import AuthenticatedChannel
from src.pm_relay.domain.codec import decode_payload
from src.pm_relay.domain.models import RelayMessage, RelayResult
from src.pm_relay.domain.repository import RelayMessageRepositoryProtocol

logger = logging.getLogger(__name__)


class CrossDomainRelay:
    def __init__(
        self,
        engine: MarketEngine,
        messages: RelayMessageRepositoryProtocol,
        trusted_channels: Iterable[str],
        trusted_remotes: Mapping[int, str] | None = None,
        max_cost: int | None = None,
    ) -> None:
        self._engine = engine
        self._messages = messages
        self._trusted_channels = frozenset(trusted_channels)
        self._trusted_remotes = dict(trusted_remotes or {})
        self._max_cost = max_cost

    async def on_remote_message(
        self,
        db: AsyncSession,
        channel: object,
        source_domain_id: int,
        source_address: str,
        nonce: int,
        payload: bytes,
    ) -> RelayResult:
        self._authenticate(channel, source_domain_id, source_address)
        bet = decode_payload(payload)

        message = RelayMessage(
            source_domain_id=source_domain_id,
            nonce=nonce,
            source_address=source_address,
            market_id=bet.market_id,
            account_id=bet.account_id,
            amount=bet.amount,
            side=bet.side,
        )
        async with db.begin_nested():
            if not await self._messages.record(db, message):
                logger.info(
                    "Duplicate relay message ignored: domain=%d nonce=%d",
                    source_domain_id, nonce,
                )
                raise DuplicateMessageError(source_domain_id, nonce)
            result = await self._engine.trade(
                db,
                bet.market_id,
                bet.account_id,
                bet.side,
                bet.amount,
                max_cost=self._max_cost,
            )
            await self._messages.set_cost(db, source_domain_id, nonce, result.cost)

        logger.info(
            "Relay applied: domain=%d nonce=%d market=%d account=%s cost=%d",
            source_domain_id, nonce, bet.market_id, bet.account_id, result.cost,
        )
        return RelayResult(
            source_domain_id=source_domain_id,
            nonce=nonce,
            market_id=bet.market_id,
            account_id=bet.account_id,
            side=bet.side,
            amount=bet.amount,
            cost=result.cost,
        )

    def _authenticate(self, channel: object, source_domain_id: int, source_address: str) -> None:
        if not isinstance(channel, AuthenticatedChannel):
            logger.warning("AUDIT relay call without authenticated channel: %r", channel)
            raise UntrustedChannelError("not an authenticated channel")
        if channel.channel_id not in self._trusted_channels:
            logger.warning("AUDIT relay call from untrusted channel: %s", channel.channel_id)
            raise UntrustedChannelError(channel.channel_id)
        expected = self._trusted_remotes.get(source_domain_id)
        if expected is not None and expected.lower() != source_address.lower():
            logger.warning(
                "AUDIT relay call from unexpected remote: domain=%d address=%s",
                source_domain_id, source_address,
            )
            raise UntrustedChannelError(f"remote {source_address} on domain {source_domain_id}")
