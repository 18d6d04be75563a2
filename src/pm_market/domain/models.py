"""Domain models for pm_market — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import MarketStatus, Side
from src.pm_position.domain.models import Position


@dataclass
class Market:
    id: int
    question: str
    resolution_time: datetime
    creator: str
    resolver: str                 # only this account may report the outcome
    liquidity_param: int          # b of the cost curve, fixed-point
    yes_exposure: int = 0         # shares issued on YES
    no_exposure: int = 0          # shares issued on NO
    collateral: int = 0           # total cost collected from traders
    paid_out: int = 0             # total claimed by winners
    resolved: bool = False
    outcome: Side | None = None   # meaningful only when resolved
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def exposure_on(self, side: Side) -> int:
        return self.yes_exposure if side == Side.YES else self.no_exposure

    def status_at(self, now: datetime) -> MarketStatus:
        if self.resolved:
            return MarketStatus.RESOLVED
        if now >= self.resolution_time:
            return MarketStatus.EXPIRED
        return MarketStatus.OPEN

    def apply_trade(self, side: Side, amount: int, cost: int) -> None:
        if side == Side.YES:
            self.yes_exposure += amount
        else:
            self.no_exposure += amount
        self.collateral += cost


@dataclass
class TradeResult:
    market_id: int
    account_id: str
    side: Side
    amount: int
    cost: int
    exposure_after: int
    position: Position


@dataclass
class ClaimResult:
    market_id: int
    account_id: str
    outcome: Side
    payout: int
    position: Position


@dataclass
class MarketEvent:
    """One row of the append-only observation stream."""

    id: int                 # BIGSERIAL, execution order
    market_id: int
    event_type: str         # MarketEventType value
    payload: dict[str, object]
    created_at: datetime | None = None
