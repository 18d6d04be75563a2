"""PositionLedger Protocol — per-market, per-account YES/NO holdings.

Only MarketEngine writes through this interface. Unit tests inject an
in-memory implementation; infrastructure provides the PostgreSQL one.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_position.domain.models import ExposureTotals, Position


class PositionLedgerProtocol(Protocol):
    async def credit(
        self,
        db: AsyncSession,
        market_id: int,
        account_id: str,
        side: Side,
        amount: int,
        cost: int,
    ) -> Position: ...

    async def read(
        self, db: AsyncSession, market_id: int, account_id: str
    ) -> Position: ...

    async def mark_claimed(
        self, db: AsyncSession, market_id: int, account_id: str, payout: int
    ) -> Position:
        """Raises AlreadyClaimedError if the position is already claimed."""
        ...

    async def list_by_account(
        self, db: AsyncSession, account_id: str
    ) -> list[Position]: ...

    async def totals(self, db: AsyncSession, market_id: int) -> ExposureTotals: ...
