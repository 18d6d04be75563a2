"""MarketRepository — raw SQL against the markets table.

Alembic migration 002_create_markets.py is the authoritative DDL source.
Totals are written back from the in-memory Market the engine mutated while
holding the row lock taken by get_for_update().
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_market.domain.models import Market

_COLUMNS = """id, question, resolution_time, creator, resolver, liquidity_param,
              yes_exposure, no_exposure, collateral, paid_out,
              resolved, outcome, resolved_at, created_at, updated_at"""

_INSERT_SQL = text(f"""
    INSERT INTO markets (question, resolution_time, creator, resolver, liquidity_param)
    VALUES (:question, :resolution_time, :creator, :resolver, :liquidity_param)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM markets WHERE id = :market_id")

_GET_FOR_UPDATE_SQL = text(f"SELECT {_COLUMNS} FROM markets WHERE id = :market_id FOR UPDATE")

_UPDATE_TOTALS_SQL = text("""
    UPDATE markets
    SET yes_exposure = :yes_exposure,
        no_exposure  = :no_exposure,
        collateral   = :collateral,
        paid_out     = :paid_out,
        updated_at   = NOW()
    WHERE id = :id
""")

_MARK_RESOLVED_SQL = text(f"""
    UPDATE markets
    SET resolved = TRUE,
        outcome = :outcome,
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :market_id AND resolved = FALSE
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM markets
    WHERE (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")


class MarketRepository:
    async def create(
        self,
        db: AsyncSession,
        question: str,
        resolution_time: datetime,
        creator: str,
        resolver: str,
        liquidity_param: int,
    ) -> Market:
        row = (
            await db.execute(
                _INSERT_SQL,
                {
                    "question": question,
                    "resolution_time": resolution_time,
                    "creator": creator,
                    "resolver": resolver,
                    "liquidity_param": liquidity_param,
                },
            )
        ).fetchone()
        return _row_to_market(row)

    async def get(self, db: AsyncSession, market_id: int) -> Market | None:
        row = (await db.execute(_GET_SQL, {"market_id": market_id})).fetchone()
        return _row_to_market(row) if row is not None else None

    async def get_for_update(self, db: AsyncSession, market_id: int) -> Market | None:
        row = (await db.execute(_GET_FOR_UPDATE_SQL, {"market_id": market_id})).fetchone()
        return _row_to_market(row) if row is not None else None

    async def update_totals(self, db: AsyncSession, market: Market) -> None:
        await db.execute(
            _UPDATE_TOTALS_SQL,
            {
                "id": market.id,
                "yes_exposure": market.yes_exposure,
                "no_exposure": market.no_exposure,
                "collateral": market.collateral,
                "paid_out": market.paid_out,
            },
        )

    async def mark_resolved(
        self, db: AsyncSession, market_id: int, outcome: Side, resolved_at: datetime
    ) -> Market | None:
        row = (
            await db.execute(
                _MARK_RESOLVED_SQL,
                {"market_id": market_id, "outcome": outcome.value, "resolved_at": resolved_at},
            )
        ).fetchone()
        return _row_to_market(row) if row is not None else None

    async def list_markets(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> list[Market]:
        rows = (
            await db.execute(_LIST_SQL, {"cursor_id": cursor_id, "limit": limit})
        ).fetchall()
        return [_row_to_market(r) for r in rows]


def _row_to_market(row: Any) -> Market:
    return Market(
        id=int(row.id),
        question=row.question,
        resolution_time=row.resolution_time,
        creator=row.creator,
        resolver=row.resolver,
        liquidity_param=int(row.liquidity_param),
        yes_exposure=int(row.yes_exposure),
        no_exposure=int(row.no_exposure),
        collateral=int(row.collateral),
        paid_out=int(row.paid_out),
        resolved=bool(row.resolved),
        outcome=Side(row.outcome) if row.outcome is not None else None,
        resolved_at=row.resolved_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
