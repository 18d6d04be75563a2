"""Domain models for pm_position — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import Side


@dataclass
class Position:
    market_id: int
    account_id: str
    yes_amount: int = 0
    no_amount: int = 0
    yes_cost: int = 0       # collateral spent on YES, informational
    no_cost: int = 0        # collateral spent on NO, informational
    claimed: bool = False
    payout: int = 0         # collateral paid on claim
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def amount_on(self, side: Side) -> int:
        return self.yes_amount if side == Side.YES else self.no_amount

    @property
    def is_empty(self) -> bool:
        return self.yes_amount == 0 and self.no_amount == 0


@dataclass
class ExposureTotals:
    """Sum of holdings across every account in one market."""

    yes_amount: int = 0
    no_amount: int = 0
