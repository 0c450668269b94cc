"""003: create market_cache table

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE market_cache (
            symbol          VARCHAR(32)     PRIMARY KEY,
            price           NUMERIC(20, 8)  NOT NULL,
            change_24h      NUMERIC(12, 4)  NOT NULL DEFAULT 0,
            observed_at     TIMESTAMPTZ     NOT NULL,
            is_fallback     BOOLEAN         NOT NULL DEFAULT FALSE,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_market_cache_price_positive CHECK (price > 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE market_cache IS 'Latest quote per coin, written only by the market feed';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_cache CASCADE;")
