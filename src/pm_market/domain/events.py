"""Observations emitted by the market core for external indexers.

Each event is appended to market_events inside the transaction that
produced it, so the stream is exactly the sequence of committed changes.
Amounts are rendered as decimal strings to survive JSON consumers that
parse numbers as doubles.
"""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import MarketEventType, Side


@dataclass(frozen=True)
class MarketCreated:
    market_id: int
    question: str
    resolution_time: datetime

    event_type = MarketEventType.MARKET_CREATED

    def payload(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "question": self.question,
            "resolution_time": self.resolution_time.isoformat(),
        }


@dataclass(frozen=True)
class BetPlaced:
    market_id: int
    account_id: str
    amount: int
    side: Side
    cost: int

    event_type = MarketEventType.BET_PLACED

    def payload(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "account": self.account_id,
            "amount": str(self.amount),
            "side": self.side.value,
            "cost": str(self.cost),
        }


@dataclass(frozen=True)
class MarketResolved:
    market_id: int
    outcome: Side

    event_type = MarketEventType.MARKET_RESOLVED

    def payload(self) -> dict[str, object]:
        return {"market_id": self.market_id, "outcome": self.outcome.value}


@dataclass(frozen=True)
class Claimed:
    market_id: int
    account_id: str
    payout: int

    event_type = MarketEventType.CLAIMED

    def payload(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "account": self.account_id,
            "payout": str(self.payout),
        }


MarketObservation = MarketCreated | BetPlaced | MarketResolved | Claimed
