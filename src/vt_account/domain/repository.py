"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.domain.models import LedgerEntry, Profile


class AccountRepositoryProtocol(Protocol):
    async def get_profile(self, db: AsyncSession, user_id: str) -> Profile | None: ...

    async def adjust_balance(
        self,
        db: AsyncSession,
        user_id: str,
        delta: float,
        allow_negative: bool = False,
    ) -> float: ...

    async def add_trading_volume(
        self, db: AsyncSession, user_id: str, amount: float
    ) -> float: ...

    async def append_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: float,
        balance_after: float,
        description: str,
        reference_id: str | None = None,
    ) -> LedgerEntry: ...

    async def unlock_achievement(
        self, db: AsyncSession, user_id: str, achievement_id: str
    ) -> bool: ...
