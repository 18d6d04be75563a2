"""OracleResolver — one-shot, irreversible outcome reporting.

Only the market's designated resolver may report, and only once the trading
window has closed, so nobody can trade knowing the outcome. There is no
dispute or override path: resolved markets stay resolved.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_common.errors import (
    AlreadyResolvedError,
    ResolutionTooEarlyError,
    UnauthorizedResolverError,
    UnknownMarketError,
)
from src.pm_market.domain.events import MarketResolved
from src.pm_market.domain.models import Market
from src.pm_market.engine.engine import MarketEngine

logger = logging.getLogger(__name__)


class OracleResolver:
    def __init__(self, engine: MarketEngine) -> None:
        self._engine = engine

    async def resolve(
        self, db: AsyncSession, market_id: int, outcome: Side, caller: str
    ) -> Market:
        async with self._engine.market_lock(market_id):
            async with db.begin_nested():
                market = await self._engine.markets.get_for_update(db, market_id)
                if market is None:
                    raise UnknownMarketError(market_id)
                if caller != market.resolver:
                    logger.warning(
                        "AUDIT unauthorized resolve: market=%d caller=%s resolver=%s",
                        market_id, caller, market.resolver,
                    )
                    raise UnauthorizedResolverError(market_id)
                if market.resolved:
                    raise AlreadyResolvedError(market_id)
                now = self._engine.now()
                if now < market.resolution_time:
                    raise ResolutionTooEarlyError(market_id)

                resolved = await self._engine.markets.mark_resolved(db, market_id, outcome, now)
                if resolved is None:
                    # Row lock makes this unreachable unless the row was changed outside the engine
                    raise AlreadyResolvedError(market_id)
                await self._engine.events.append(db, MarketResolved(market_id, outcome))

        logger.info("Market resolved: id=%d outcome=%s by=%s", market_id, outcome.value, caller)
        return resolved
