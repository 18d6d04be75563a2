"""MarketApplicationService — thin composition layer over MarketEngine.

Mutating methods commit on success and roll back on any error; read-only
methods run without an explicit transaction. The caller (router) passes the
db session.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.enums import Side
from src.pm_common.fixed_point import to_display
from src.pm_market.application.schemas import (
    ClaimResponse,
    CreateMarketResponse,
    MarketDetail,
    MarketEventItem,
    MarketEventListResponse,
    MarketListResponse,
    QuoteResponse,
    TradeResponse,
    cursor_decode,
    cursor_encode,
)
from src.pm_market.engine.engine import MarketEngine
from src.pm_market.infrastructure.event_log import MarketEventLog
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_position.infrastructure.persistence import PositionRepository
from src.pm_pricing.domain import lmsr

_engine: MarketEngine | None = None


def get_market_engine() -> MarketEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = MarketEngine(
            markets=MarketRepository(),
            positions=PositionRepository(),
            ledger=AccountRepository(),
            events=MarketEventLog(),
            liquidity_param=settings.AMM_LIQUIDITY,
        )
    return _engine


class MarketApplicationService:
    def __init__(self, engine: MarketEngine | None = None) -> None:
        self._engine: MarketEngine = engine or get_market_engine()

    async def create_market(
        self,
        db: AsyncSession,
        creator: str,
        question: str,
        resolution_time: datetime,
        resolver: str | None,
    ) -> CreateMarketResponse:
        try:
            market_id = await self._engine.create_market(
                db, question, resolution_time, creator, resolver
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return CreateMarketResponse(market_id=market_id)

    async def get_market(self, db: AsyncSession, market_id: int) -> MarketDetail:
        market = await self._engine.get_market(db, market_id)
        return MarketDetail.from_domain(market, self._engine.now())

    async def list_markets(
        self, db: AsyncSession, cursor: str | None, limit: int
    ) -> MarketListResponse:
        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._engine.markets.list_markets(db, cursor_decode(cursor), limit + 1)
        has_more = len(markets) > limit
        page = markets[:limit]
        now = self._engine.now()
        return MarketListResponse(
            items=[MarketDetail.from_domain(m, now) for m in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def quote(
        self, db: AsyncSession, market_id: int, side: Side, amount: int
    ) -> QuoteResponse:
        market = await self._engine.get_market(db, market_id)
        cost = await self._engine.quote(db, market_id, side, amount)
        exposure = market.exposure_on(side)
        return QuoteResponse(
            market_id=market_id,
            side=side.value,
            amount=amount,
            cost=cost,
            cost_display=to_display(cost),
            price_before=lmsr.marginal_price(exposure, market.liquidity_param),
            price_after=lmsr.marginal_price(exposure + amount, market.liquidity_param),
        )

    async def trade(
        self,
        db: AsyncSession,
        market_id: int,
        account_id: str,
        side: Side,
        amount: int,
        max_cost: int | None,
    ) -> TradeResponse:
        try:
            result = await self._engine.trade(db, market_id, account_id, side, amount, max_cost)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return TradeResponse.from_result(result)

    async def claim(self, db: AsyncSession, market_id: int, account_id: str) -> ClaimResponse:
        try:
            result = await self._engine.claim(db, market_id, account_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return ClaimResponse.from_result(result)

    async def list_events(
        self, db: AsyncSession, market_id: int, cursor: str | None, limit: int
    ) -> MarketEventListResponse:
        await self._engine.get_market(db, market_id)
        events = await self._engine.events.list_events(
            db, market_id, cursor_decode(cursor), limit + 1
        )
        has_more = len(events) > limit
        page = events[:limit]
        return MarketEventListResponse(
            items=[MarketEventItem.from_domain(e) for e in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )
