"""Append-only market_events writer/reader.

Called from MarketEngine/OracleResolver within their transaction; the
BIGSERIAL id gives consumers execution order.
"""
import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.events import MarketObservation
from src.pm_market.domain.models import MarketEvent

_INSERT_EVENT_SQL = text("""
    INSERT INTO market_events (market_id, event_type, payload)
    VALUES (:market_id, :event_type, CAST(:payload AS JSONB))
    RETURNING id, market_id, event_type, payload, created_at
""")

_LIST_EVENTS_SQL = text("""
    SELECT id, market_id, event_type, payload, created_at
    FROM market_events
    WHERE market_id = :market_id
      AND (CAST(:after_id AS BIGINT) IS NULL OR id > :after_id)
    ORDER BY id ASC
    LIMIT :limit
""")


class MarketEventLog:
    async def append(self, db: AsyncSession, event: MarketObservation) -> MarketEvent:
        row = (
            await db.execute(
                _INSERT_EVENT_SQL,
                {
                    "market_id": event.market_id,
                    "event_type": event.event_type.value,
                    "payload": json.dumps(event.payload()),
                },
            )
        ).fetchone()
        return _row_to_event(row)

    async def list_events(
        self, db: AsyncSession, market_id: int, after_id: int | None, limit: int
    ) -> list[MarketEvent]:
        rows = (
            await db.execute(
                _LIST_EVENTS_SQL,
                {"market_id": market_id, "after_id": after_id, "limit": limit},
            )
        ).fetchall()
        return [_row_to_event(r) for r in rows]


def _row_to_event(row: Any) -> MarketEvent:
    payload = row.payload
    if isinstance(payload, str):
        payload = json.loads(payload)
    return MarketEvent(
        id=int(row.id),
        market_id=int(row.market_id),
        event_type=row.event_type,
        payload=payload,
        created_at=row.created_at,
    )
