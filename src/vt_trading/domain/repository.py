"""Repository Protocol for spot positions."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_trading.domain.models import SpotPosition


class SpotPositionRepositoryProtocol(Protocol):
    async def get_for_update(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> SpotPosition | None: ...

    async def save(self, db: AsyncSession, position: SpotPosition) -> None: ...

    async def delete(self, db: AsyncSession, user_id: str, symbol: str) -> bool: ...

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[SpotPosition]: ...
