"""008: create user_achievements table

Revision ID: 008
Revises: 007
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE user_achievements (
            user_id         VARCHAR(32)     NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
            achievement_id  VARCHAR(32)     NOT NULL,
            unlocked_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_user_achievements PRIMARY KEY (user_id, achievement_id)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_achievements CASCADE;")
