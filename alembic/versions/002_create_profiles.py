"""002: create profiles table

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # balance may go negative: maintenance debits are not guarded
    op.execute("""
        CREATE TABLE profiles (
            id              VARCHAR(32)     PRIMARY KEY,
            username        VARCHAR(64),
            balance         NUMERIC(20, 8)  NOT NULL DEFAULT 10000,
            trading_volume  NUMERIC(20, 8)  NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_profiles_volume_non_negative CHECK (trading_volume >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_profiles_updated_at
            BEFORE UPDATE ON profiles
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE profiles IS 'Player profile keyed by Telegram user id';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS profiles CASCADE;")
