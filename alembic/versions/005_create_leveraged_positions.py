"""005: create leveraged_positions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE leveraged_positions (
            id                  BIGSERIAL       PRIMARY KEY,
            user_id             VARCHAR(32)     NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
            symbol              VARCHAR(32)     NOT NULL,
            amount              NUMERIC(28, 12) NOT NULL,
            entry_price         NUMERIC(20, 8)  NOT NULL,
            leverage            SMALLINT        NOT NULL,
            liquidation_price   NUMERIC(20, 8)  NOT NULL,
            margin              NUMERIC(20, 8)  NOT NULL,
            opened_at           TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leveraged_positions_user_symbol UNIQUE (user_id, symbol),
            CONSTRAINT ck_leveraged_positions_leverage CHECK (leverage BETWEEN 2 AND 50),
            CONSTRAINT ck_leveraged_positions_amount CHECK (amount > 0),
            CONSTRAINT ck_leveraged_positions_liq_below_entry CHECK (liquidation_price < entry_price)
        );
    """)
    op.execute(
        "COMMENT ON TABLE leveraged_positions IS 'Open leveraged longs, at most one per user and coin';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS leveraged_positions CASCADE;")
