"""PropertyRepository — property_assets table.

UNIQUE (user_id, asset_type): one asset per type per owner.
CHECK (condition BETWEEN 0 AND 100).
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_economy.domain.properties import PropertyAsset

_COLUMNS = "id, user_id, asset_type, purchase_price, condition, last_rent_collected_at, created_at"

_LIST_IDS_SQL = text("SELECT id FROM property_assets ORDER BY id")

_GET_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM property_assets
    WHERE id = :asset_id
    FOR UPDATE
""")

_LIST_FOR_USER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM property_assets
    WHERE user_id = :user_id
    ORDER BY created_at, id
""")

_INSERT_SQL = text(f"""
    INSERT INTO property_assets (user_id, asset_type, purchase_price, condition)
    VALUES (:user_id, :asset_type, :purchase_price, 100)
    ON CONFLICT (user_id, asset_type) DO NOTHING
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text(f"""
    DELETE FROM property_assets
    WHERE id = :asset_id AND user_id = :user_id
    RETURNING {_COLUMNS}
""")

_UPDATE_STATE_SQL = text("""
    UPDATE property_assets
    SET condition = :condition,
        last_rent_collected_at = :last_rent_collected_at,
        updated_at = NOW()
    WHERE id = :asset_id
""")


def _row_to_asset(row: object) -> PropertyAsset:
    return PropertyAsset(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        asset_type=row.asset_type,  # type: ignore[attr-defined]
        purchase_price=float(row.purchase_price),  # type: ignore[attr-defined]
        condition=int(row.condition),  # type: ignore[attr-defined]
        last_rent_collected_at=row.last_rent_collected_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class PropertyRepository:
    async def list_ids(self, db: AsyncSession) -> list[int]:
        result = await db.execute(_LIST_IDS_SQL)
        return [row.id for row in result.fetchall()]

    async def get_for_update(self, db: AsyncSession, asset_id: int) -> PropertyAsset | None:
        result = await db.execute(_GET_FOR_UPDATE_SQL, {"asset_id": asset_id})
        row = result.fetchone()
        return _row_to_asset(row) if row else None

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[PropertyAsset]:
        result = await db.execute(_LIST_FOR_USER_SQL, {"user_id": user_id})
        return [_row_to_asset(r) for r in result.fetchall()]

    async def insert(
        self, db: AsyncSession, user_id: str, asset_type: str, purchase_price: float
    ) -> PropertyAsset | None:
        result = await db.execute(
            _INSERT_SQL,
            {"user_id": user_id, "asset_type": asset_type, "purchase_price": purchase_price},
        )
        row = result.fetchone()
        return _row_to_asset(row) if row else None

    async def delete(self, db: AsyncSession, user_id: str, asset_id: int) -> PropertyAsset | None:
        result = await db.execute(_DELETE_SQL, {"asset_id": asset_id, "user_id": user_id})
        row = result.fetchone()
        return _row_to_asset(row) if row else None

    async def update_state(
        self,
        db: AsyncSession,
        asset_id: int,
        condition: int,
        last_rent_collected_at: datetime | None,
    ) -> None:
        await db.execute(
            _UPDATE_STATE_SQL,
            {
                "asset_id": asset_id,
                "condition": condition,
                "last_rent_collected_at": last_rent_collected_at,
            },
        )
