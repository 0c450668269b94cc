"""Repository Protocol for leveraged positions."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_leverage.domain.models import LeveragedPosition


class LeveragedPositionRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, position: LeveragedPosition) -> LeveragedPosition:
        """Raises DuplicateLeveragePositionError if (user, symbol) is taken."""
        ...

    async def delete(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> LeveragedPosition | None:
        """Delete and return the row; None if someone else already removed it."""
        ...

    async def delete_by_id(self, db: AsyncSession, position_id: int) -> LeveragedPosition | None:
        """Delete exactly the given row; None if it is already gone."""
        ...

    async def list_open(self, db: AsyncSession) -> list[LeveragedPosition]: ...
