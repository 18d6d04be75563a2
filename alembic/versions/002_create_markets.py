"""002: create markets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                  BIGSERIAL       PRIMARY KEY,
            question            VARCHAR(500)    NOT NULL,
            resolution_time     TIMESTAMPTZ     NOT NULL,
            creator             VARCHAR(128)    NOT NULL,
            resolver            VARCHAR(128)    NOT NULL,
            liquidity_param     NUMERIC(78, 0)  NOT NULL,
            yes_exposure        NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            no_exposure         NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            collateral          NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            paid_out            NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            resolved            BOOLEAN         NOT NULL DEFAULT FALSE,
            outcome             VARCHAR(3),
            resolved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_liquidity_gt_0     CHECK (liquidity_param > 0),
            CONSTRAINT ck_markets_exposure_gte_0     CHECK (yes_exposure >= 0 AND no_exposure >= 0),
            CONSTRAINT ck_markets_paid_out_bounded   CHECK (paid_out >= 0 AND paid_out <= collateral),
            CONSTRAINT ck_markets_outcome CHECK (outcome IS NULL OR outcome IN ('YES', 'NO')),
            CONSTRAINT ck_markets_resolution CHECK (resolved = (outcome IS NOT NULL))
        );
    """)
    op.execute("CREATE INDEX idx_markets_resolution_time ON markets (resolution_time);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Binary markets — exposure totals, collateral pool, resolution';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
