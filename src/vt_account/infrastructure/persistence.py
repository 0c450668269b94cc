"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

Balance mutations are single guarded UPDATE ... RETURNING statements. A result
of 0 rows means the guard failed (unknown profile or insufficient funds).

Transaction ownership: the CALLER wraps the calls in `atomic(db)`.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.domain.models import LedgerEntry, Profile
from src.vt_common.errors import InsufficientFundsError, InternalError, ProfileNotFoundError

_GET_PROFILE_SQL = text("""
    SELECT id, username, balance, trading_volume, created_at, updated_at
    FROM profiles
    WHERE id = :user_id
""")

_ADJUST_BALANCE_SQL = text("""
    UPDATE profiles
    SET balance = balance + :delta
    WHERE id = :user_id
      AND (CAST(:allow_negative AS BOOLEAN) OR balance + :delta >= 0)
    RETURNING balance
""")

_ADD_VOLUME_SQL = text("""
    UPDATE profiles
    SET trading_volume = trading_volume + :amount
    WHERE id = :user_id
    RETURNING trading_volume
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_id, description, created_at
""")

_UNLOCK_ACHIEVEMENT_SQL = text("""
    INSERT INTO user_achievements (user_id, achievement_id)
    VALUES (:user_id, :achievement_id)
    ON CONFLICT (user_id, achievement_id) DO NOTHING
    RETURNING achievement_id
""")


def _row_to_profile(row: object) -> Profile:
    return Profile(
        id=row.id,  # type: ignore[attr-defined]
        username=row.username,  # type: ignore[attr-defined]
        balance=float(row.balance),  # type: ignore[attr-defined]
        trading_volume=float(row.trading_volume),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=float(row.amount),  # type: ignore[attr-defined]
        balance_after=float(row.balance_after),  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def get_profile(self, db: AsyncSession, user_id: str) -> Profile | None:
        result = await db.execute(_GET_PROFILE_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_profile(row) if row else None

    async def adjust_balance(
        self,
        db: AsyncSession,
        user_id: str,
        delta: float,
        allow_negative: bool = False,
    ) -> float:
        """Add delta (negative = debit) and return the new balance."""
        result = await db.execute(
            _ADJUST_BALANCE_SQL,
            {"user_id": user_id, "delta": delta, "allow_negative": allow_negative},
        )
        row = result.fetchone()
        if row is None:
            profile = await self.get_profile(db, user_id)
            if profile is None:
                raise ProfileNotFoundError(user_id)
            raise InsufficientFundsError(-delta, profile.balance)
        return float(row.balance)

    async def add_trading_volume(
        self, db: AsyncSession, user_id: str, amount: float
    ) -> float:
        result = await db.execute(_ADD_VOLUME_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise ProfileNotFoundError(user_id)
        return float(row.trading_volume)

    async def append_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: float,
        balance_after: float,
        description: str,
        reference_id: str | None = None,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": balance_after,
                "reference_id": reference_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)

    async def unlock_achievement(
        self, db: AsyncSession, user_id: str, achievement_id: str
    ) -> bool:
        """True only the first time; later calls hit ON CONFLICT DO NOTHING."""
        result = await db.execute(
            _UNLOCK_ACHIEVEMENT_SQL, {"user_id": user_id, "achievement_id": achievement_id}
        )
        return result.fetchone() is not None
