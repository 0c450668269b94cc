"""007: create ledger_entries table

Revision ID: 007
Revises: 006
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(32)     NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
            entry_type      VARCHAR(32)     NOT NULL,
            amount          NUMERIC(20, 8)  NOT NULL,
            balance_after   NUMERIC(20, 8)  NOT NULL,
            reference_id    VARCHAR(64),
            description     TEXT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entries_type CHECK (entry_type IN (
                'BUY_CRYPTO', 'SELL_CRYPTO',
                'LEVERAGE_OPEN', 'LEVERAGE_CLOSE', 'LIQUIDATION',
                'BUY_PROPERTY', 'SELL_PROPERTY', 'PROPERTY_REPAIR', 'RENT', 'MAINTENANCE',
                'ACHIEVEMENT'
            ))
        );
    """)
    op.execute(
        "CREATE INDEX idx_ledger_entries_user_created ON ledger_entries (user_id, created_at DESC);"
    )
    op.execute("""
        CREATE TRIGGER trg_ledger_entries_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_ledger_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
