# src/pm_market/domain/repository.py
"""Repository Protocols — dependency inversion for testability.

Unit tests inject in-memory implementations that conform to these Protocols.
Infrastructure layer provides the PostgreSQL implementations.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_market.domain.events import MarketObservation
from src.pm_market.domain.models import Market, MarketEvent


class MarketRepositoryProtocol(Protocol):
    async def create(
        self,
        db: AsyncSession,
        question: str,
        resolution_time: datetime,
        creator: str,
        resolver: str,
        liquidity_param: int,
    ) -> Market: ...

    async def get(self, db: AsyncSession, market_id: int) -> Market | None: ...

    async def get_for_update(self, db: AsyncSession, market_id: int) -> Market | None:
        """Row-locked read; the lock lasts until the caller's transaction ends."""
        ...

    async def update_totals(self, db: AsyncSession, market: Market) -> None:
        """Persist exposures, collateral and paid_out from `market`."""
        ...

    async def mark_resolved(
        self, db: AsyncSession, market_id: int, outcome: Side, resolved_at: datetime
    ) -> Market | None:
        """Flip resolved false -> true. Returns None if it was already true."""
        ...

    async def list_markets(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> list[Market]: ...


class EventLogProtocol(Protocol):
    async def append(self, db: AsyncSession, event: MarketObservation) -> MarketEvent: ...

    async def list_events(
        self, db: AsyncSession, market_id: int, after_id: int | None, limit: int
    ) -> list[MarketEvent]: ...
