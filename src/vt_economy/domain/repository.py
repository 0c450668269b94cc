"""Repository Protocol for property assets."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_economy.domain.properties import PropertyAsset


class PropertyRepositoryProtocol(Protocol):
    async def list_ids(self, db: AsyncSession) -> list[int]: ...

    async def get_for_update(self, db: AsyncSession, asset_id: int) -> PropertyAsset | None: ...

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[PropertyAsset]: ...

    async def insert(
        self, db: AsyncSession, user_id: str, asset_type: str, purchase_price: float
    ) -> PropertyAsset | None:
        """None when the user already owns this type."""
        ...

    async def delete(
        self, db: AsyncSession, user_id: str, asset_id: int
    ) -> PropertyAsset | None: ...

    async def update_state(
        self,
        db: AsyncSession,
        asset_id: int,
        condition: int,
        last_rent_collected_at: datetime | None,
    ) -> None: ...
