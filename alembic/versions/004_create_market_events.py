"""004: create market_events table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE market_events (
            id              BIGSERIAL       PRIMARY KEY,
            market_id       BIGINT          NOT NULL REFERENCES markets (id),
            event_type      VARCHAR(30)     NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_market_event_type CHECK (
                event_type IN ('MARKET_CREATED', 'BET_PLACED', 'MARKET_RESOLVED', 'CLAIMED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_market_events_market ON market_events (market_id, id);")
    op.execute("COMMENT ON TABLE market_events IS 'Observation stream — Append-Only, ordered by id';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_events CASCADE;")
