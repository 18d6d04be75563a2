"""RelayMessageRepository — relay_messages table.

UNIQUE (source_domain_id, nonce) is what makes delivery idempotent; the
INSERT uses ON CONFLICT DO NOTHING so a replay returns no row instead of
aborting the surrounding transaction.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import Side
from src.pm_relay.domain.models import RelayMessage

_RECORD_SQL = text("""
    INSERT INTO relay_messages
        (source_domain_id, nonce, source_address, market_id, account_id, amount, side)
    VALUES
        (:source_domain_id, :nonce, :source_address, :market_id, :account_id, :amount, :side)
    ON CONFLICT (source_domain_id, nonce) DO NOTHING
    RETURNING id
""")

_SET_COST_SQL = text("""
    UPDATE relay_messages SET cost = :cost
    WHERE source_domain_id = :source_domain_id AND nonce = :nonce
""")


class RelayMessageRepository:
    async def record(self, db: AsyncSession, message: RelayMessage) -> bool:
        row = (
            await db.execute(
                _RECORD_SQL,
                {
                    "source_domain_id": message.source_domain_id,
                    "nonce": message.nonce,
                    "source_address": message.source_address,
                    "market_id": message.market_id,
                    "account_id": message.account_id,
                    "amount": message.amount,
                    "side": message.side.value,
                },
            )
        ).fetchone()
        return row is not None

    async def set_cost(
        self, db: AsyncSession, source_domain_id: int, nonce: int, cost: int
    ) -> None:
        await db.execute(
            _SET_COST_SQL,
            {"source_domain_id": source_domain_id, "nonce": nonce, "cost": cost},
        )
