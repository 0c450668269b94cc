"""004: create spot_positions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE spot_positions (
            user_id         VARCHAR(32)     NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
            symbol          VARCHAR(32)     NOT NULL,
            amount          NUMERIC(28, 12) NOT NULL,
            avg_buy_price   NUMERIC(20, 8)  NOT NULL,
            opened_at       TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_spot_positions PRIMARY KEY (user_id, symbol),
            CONSTRAINT ck_spot_positions_amount CHECK (amount > 0),
            CONSTRAINT ck_spot_positions_avg_price CHECK (avg_buy_price > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_spot_positions_updated_at
            BEFORE UPDATE ON spot_positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS spot_positions CASCADE;")
