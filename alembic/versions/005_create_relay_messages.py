"""005: create relay_messages table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE relay_messages (
            id                  BIGSERIAL       PRIMARY KEY,
            source_domain_id    BIGINT          NOT NULL,
            nonce               NUMERIC(78, 0)  NOT NULL,
            source_address      VARCHAR(128)    NOT NULL,
            market_id           BIGINT          NOT NULL,
            account_id          VARCHAR(128)    NOT NULL,
            amount              NUMERIC(78, 0)  NOT NULL,
            side                VARCHAR(3)      NOT NULL,
            cost                NUMERIC(78, 0),
            applied_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_relay_domain_nonce UNIQUE (source_domain_id, nonce),
            CONSTRAINT ck_relay_side CHECK (side IN ('YES', 'NO'))
        );
    """)
    op.execute("COMMENT ON TABLE relay_messages IS 'Applied cross-domain messages — dedup by (domain, nonce)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS relay_messages CASCADE;")
