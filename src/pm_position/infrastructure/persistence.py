"""PositionLedger — concrete PostgreSQL implementation.

Rows are created lazily on first credit (INSERT ... ON CONFLICT). The claim
update is conditional on claimed = FALSE; zero rows returned means the
position was already claimed and the caller's transaction must abort.

Transaction ownership: the CALLER (MarketEngine) holds the savepoint.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_common.errors import AlreadyClaimedError
from src.pm_position.domain.models import ExposureTotals, Position

_COLUMNS = """market_id, account_id, yes_amount, no_amount, yes_cost, no_cost,
              claimed, payout, created_at, updated_at"""

_CREDIT_YES_SQL = text(f"""
    INSERT INTO positions (market_id, account_id, yes_amount, yes_cost)
    VALUES (:market_id, :account_id, :amount, :cost)
    ON CONFLICT (market_id, account_id) DO UPDATE
        SET yes_amount = positions.yes_amount + :amount,
            yes_cost   = positions.yes_cost   + :cost,
            updated_at = NOW()
    RETURNING {_COLUMNS}
""")

_CREDIT_NO_SQL = text(f"""
    INSERT INTO positions (market_id, account_id, no_amount, no_cost)
    VALUES (:market_id, :account_id, :amount, :cost)
    ON CONFLICT (market_id, account_id) DO UPDATE
        SET no_amount  = positions.no_amount + :amount,
            no_cost    = positions.no_cost   + :cost,
            updated_at = NOW()
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE market_id = :market_id AND account_id = :account_id
""")

_MARK_CLAIMED_SQL = text(f"""
    INSERT INTO positions (market_id, account_id, claimed, payout)
    VALUES (:market_id, :account_id, TRUE, :payout)
    ON CONFLICT (market_id, account_id) DO UPDATE
        SET claimed = TRUE,
            payout = :payout,
            updated_at = NOW()
        WHERE positions.claimed = FALSE
    RETURNING {_COLUMNS}
""")

_LIST_BY_ACCOUNT_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE account_id = :account_id
      AND (yes_amount > 0 OR no_amount > 0)
    ORDER BY market_id
""")

_TOTALS_SQL = text("""
    SELECT COALESCE(SUM(yes_amount), 0) AS yes_amount,
           COALESCE(SUM(no_amount), 0)  AS no_amount
    FROM positions
    WHERE market_id = :market_id
""")


class PositionRepository:
    async def credit(
        self,
        db: AsyncSession,
        market_id: int,
        account_id: str,
        side: Side,
        amount: int,
        cost: int,
    ) -> Position:
        sql = _CREDIT_YES_SQL if side == Side.YES else _CREDIT_NO_SQL
        row = (
            await db.execute(
                sql,
                {"market_id": market_id, "account_id": account_id, "amount": amount, "cost": cost},
            )
        ).fetchone()
        return _row_to_position(row)

    async def read(self, db: AsyncSession, market_id: int, account_id: str) -> Position:
        row = (
            await db.execute(_GET_SQL, {"market_id": market_id, "account_id": account_id})
        ).fetchone()
        if row is None:
            return Position(market_id=market_id, account_id=account_id)
        return _row_to_position(row)

    async def mark_claimed(
        self, db: AsyncSession, market_id: int, account_id: str, payout: int
    ) -> Position:
        row = (
            await db.execute(
                _MARK_CLAIMED_SQL,
                {"market_id": market_id, "account_id": account_id, "payout": payout},
            )
        ).fetchone()
        if row is None:
            raise AlreadyClaimedError(market_id, account_id)
        return _row_to_position(row)

    async def list_by_account(self, db: AsyncSession, account_id: str) -> list[Position]:
        rows = (await db.execute(_LIST_BY_ACCOUNT_SQL, {"account_id": account_id})).fetchall()
        return [_row_to_position(r) for r in rows]

    async def totals(self, db: AsyncSession, market_id: int) -> ExposureTotals:
        row = (await db.execute(_TOTALS_SQL, {"market_id": market_id})).fetchone()
        if row is None:
            return ExposureTotals()
        return ExposureTotals(yes_amount=int(row.yes_amount), no_amount=int(row.no_amount))


def _row_to_position(row: Any) -> Position:
    # NUMERIC columns come back as Decimal from asyncpg
    return Position(
        market_id=int(row.market_id),
        account_id=row.account_id,
        yes_amount=int(row.yes_amount),
        no_amount=int(row.no_amount),
        yes_cost=int(row.yes_cost),
        no_cost=int(row.no_cost),
        claimed=bool(row.claimed),
        payout=int(row.payout),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
