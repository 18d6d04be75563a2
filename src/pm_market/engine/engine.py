"""MarketEngine — owns the market lifecycle: create, quote, trade, claim.

Every mutating operation on a market runs under that market's asyncio.Lock
and inside one savepoint, and re-reads the market row FOR UPDATE. Either the
Ledger transfer, the position change, the market totals and the event are
all written, or none are. Quotes take no lock and may be stale by the time
a trade commits; `max_cost` is the caller's guard against that.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.repository import LedgerProtocol
from src.pm_common.datetime_utils import Clock, is_aware, to_utc, utc_now
from src.pm_common.enums import LedgerEntryType, MarketStatus, Side
from src.pm_common.errors import (
    AlreadyClaimedError,
    InvalidAmountError,
    InvalidQuestionError,
    InvalidScheduleError,
    MarketExpiredError,
    MarketNotResolvedError,
    MarketResolvedError,
    SlippageExceededError,
    UnknownMarketError,
)
from src.pm_market.domain.events import BetPlaced, Claimed, MarketCreated
from src.pm_market.domain.invariants import verify_market_invariants
from src.pm_market.domain.models import ClaimResult, Market, TradeResult
from src.pm_market.domain.repository import EventLogProtocol, MarketRepositoryProtocol
from src.pm_market.domain.settlement import claim_payout
from src.pm_position.domain.repository import PositionLedgerProtocol
from src.pm_pricing.domain import lmsr

logger = logging.getLogger(__name__)


class MarketEngine:
    def __init__(
        self,
        markets: MarketRepositoryProtocol,
        positions: PositionLedgerProtocol,
        ledger: LedgerProtocol,
        events: EventLogProtocol,
        liquidity_param: int,
        clock: Clock = utc_now,
    ) -> None:
        if liquidity_param <= 0:
            raise ValueError(f"liquidity_param must be > 0, got {liquidity_param}")
        self._markets = markets
        self._positions = positions
        self._ledger = ledger
        self._events = events
        self._liquidity_param = liquidity_param
        self._clock = clock
        self._market_locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def markets(self) -> MarketRepositoryProtocol:
        return self._markets

    @property
    def events(self) -> EventLogProtocol:
        return self._events

    def now(self) -> datetime:
        return self._clock()

    def market_lock(self, market_id: int) -> asyncio.Lock:
        """The single-writer lock every state change on `market_id` must hold."""
        return self._market_locks[market_id]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_market(
        self,
        db: AsyncSession,
        question: str,
        resolution_time: datetime,
        creator: str,
        resolver: str | None = None,
    ) -> int:
        if not question or not question.strip():
            raise InvalidQuestionError()
        if not is_aware(resolution_time):
            raise InvalidScheduleError("resolution time must carry a timezone")
        resolution_time = to_utc(resolution_time)
        now = self.now()
        if resolution_time <= now:
            raise InvalidScheduleError(
                f"{resolution_time.isoformat()} is not after {now.isoformat()}"
            )

        async with db.begin_nested():
            market = await self._markets.create(
                db,
                question=question.strip(),
                resolution_time=resolution_time,
                creator=creator,
                resolver=resolver or creator,
                liquidity_param=self._liquidity_param,
            )
            await self._events.append(
                db, MarketCreated(market.id, market.question, market.resolution_time)
            )

        logger.info(
            "Market created: id=%d resolver=%s resolution_time=%s",
            market.id, market.resolver, market.resolution_time.isoformat(),
        )
        return market.id

    async def get_market(self, db: AsyncSession, market_id: int) -> Market:
        market = await self._markets.get(db, market_id)
        if market is None:
            raise UnknownMarketError(market_id)
        return market

    async def quote(self, db: AsyncSession, market_id: int, side: Side, amount: int) -> int:
        """Cost of buying `amount` on `side` right now. Reads only."""
        if amount < 0:
            raise InvalidAmountError(amount)
        market = await self.get_market(db, market_id)
        return lmsr.cost(market.exposure_on(side), amount, market.liquidity_param)

    async def trade(
        self,
        db: AsyncSession,
        market_id: int,
        account_id: str,
        side: Side,
        amount: int,
        max_cost: int | None = None,
    ) -> TradeResult:
        """Buy `amount` shares of `side`, paying at most `max_cost` (None = uncapped)."""
        if amount <= 0:
            raise InvalidAmountError(amount)

        async with self.market_lock(market_id):
            async with db.begin_nested():
                market = await self._markets.get_for_update(db, market_id)
                if market is None:
                    raise UnknownMarketError(market_id)
                self._check_tradable(market)

                exposure_before = market.exposure_on(side)
                cost = lmsr.cost(exposure_before, amount, market.liquidity_param)
                if max_cost is not None and cost > max_cost:
                    raise SlippageExceededError(cost, max_cost)

                # Debit first: a Ledger failure leaves nothing to undo
                await self._ledger.debit(
                    db, account_id, cost, LedgerEntryType.TRADE_COST.value, str(market_id)
                )
                position = await self._positions.credit(
                    db, market_id, account_id, side, amount, cost
                )
                market.apply_trade(side, amount, cost)
                await self._markets.update_totals(db, market)
                await self._events.append(
                    db, BetPlaced(market_id, account_id, amount, side, cost)
                )
                await verify_market_invariants(market, self._positions, db)

        logger.info(
            "Trade: market=%d account=%s side=%s amount=%d cost=%d",
            market_id, account_id, side.value, amount, cost,
        )
        return TradeResult(
            market_id=market_id,
            account_id=account_id,
            side=side,
            amount=amount,
            cost=cost,
            exposure_after=market.exposure_on(side),
            position=position,
        )

    async def claim(self, db: AsyncSession, market_id: int, account_id: str) -> ClaimResult:
        """Pay out the account's share of the pool. At most once per account."""
        async with self.market_lock(market_id):
            async with db.begin_nested():
                market = await self._markets.get_for_update(db, market_id)
                if market is None:
                    raise UnknownMarketError(market_id)
                if not market.resolved or market.outcome is None:
                    raise MarketNotResolvedError(market_id)

                position = await self._positions.read(db, market_id, account_id)
                if position.claimed:
                    raise AlreadyClaimedError(market_id, account_id)

                payout = claim_payout(market, position)
                position = await self._positions.mark_claimed(
                    db, market_id, account_id, payout
                )
                market.paid_out += payout
                await self._markets.update_totals(db, market)
                if payout > 0:
                    await self._ledger.credit(
                        db, account_id, payout, LedgerEntryType.CLAIM_PAYOUT.value, str(market_id)
                    )
                await self._events.append(db, Claimed(market_id, account_id, payout))
                await verify_market_invariants(market, self._positions, db)

        logger.info(
            "Claim: market=%d account=%s outcome=%s payout=%d",
            market_id, account_id, market.outcome.value, payout,
        )
        return ClaimResult(
            market_id=market_id,
            account_id=account_id,
            outcome=market.outcome,
            payout=payout,
            position=position,
        )

    def _check_tradable(self, market: Market) -> None:
        status = market.status_at(self.now())
        if status == MarketStatus.RESOLVED:
            raise MarketResolvedError(market.id)
        if status == MarketStatus.EXPIRED:
            raise MarketExpiredError(market.id)
