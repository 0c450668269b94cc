"""006: create property_assets table

Revision ID: 006
Revises: 005
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE property_assets (
            id                      BIGSERIAL       PRIMARY KEY,
            user_id                 VARCHAR(32)     NOT NULL REFERENCES profiles (id) ON DELETE CASCADE,
            asset_type              VARCHAR(32)     NOT NULL,
            purchase_price          NUMERIC(20, 2)  NOT NULL,
            condition               SMALLINT        NOT NULL DEFAULT 100,
            last_rent_collected_at  TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_property_assets_user_type UNIQUE (user_id, asset_type),
            CONSTRAINT ck_property_assets_condition CHECK (condition BETWEEN 0 AND 100),
            CONSTRAINT ck_property_assets_type CHECK (asset_type IN (
                'garage', 'apartment', 'house', 'luxury_apartment', 'commercial', 'skyscraper'
            ))
        );
    """)
    op.execute("CREATE INDEX idx_property_assets_user ON property_assets (user_id);")
    op.execute("""
        CREATE TRIGGER trg_property_assets_updated_at
            BEFORE UPDATE ON property_assets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS property_assets CASCADE;")
