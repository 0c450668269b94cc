"""SpotPositionRepository — spot_positions table, one row per (user, symbol).

get_for_update takes a row lock so concurrent trades by the same user on the
same coin serialize inside their transactions.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_trading.domain.models import SpotPosition

_SELECT_FOR_UPDATE_SQL = text("""
    SELECT user_id, symbol, amount, avg_buy_price, opened_at
    FROM spot_positions
    WHERE user_id = :user_id AND symbol = :symbol
    FOR UPDATE
""")

_UPSERT_SQL = text("""
    INSERT INTO spot_positions (user_id, symbol, amount, avg_buy_price, opened_at)
    VALUES (:user_id, :symbol, :amount, :avg_buy_price, :opened_at)
    ON CONFLICT (user_id, symbol) DO UPDATE
        SET amount        = EXCLUDED.amount,
            avg_buy_price = EXCLUDED.avg_buy_price,
            opened_at     = EXCLUDED.opened_at,
            updated_at    = NOW()
""")

_DELETE_SQL = text("""
    DELETE FROM spot_positions
    WHERE user_id = :user_id AND symbol = :symbol
    RETURNING symbol
""")

_LIST_SQL = text("""
    SELECT user_id, symbol, amount, avg_buy_price, opened_at
    FROM spot_positions
    WHERE user_id = :user_id
    ORDER BY symbol
""")


def _row_to_position(row: object) -> SpotPosition:
    return SpotPosition(
        user_id=row.user_id,  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        amount=float(row.amount),  # type: ignore[attr-defined]
        avg_buy_price=float(row.avg_buy_price),  # type: ignore[attr-defined]
        opened_at=row.opened_at,  # type: ignore[attr-defined]
    )


class SpotPositionRepository:
    async def get_for_update(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> SpotPosition | None:
        result = await db.execute(_SELECT_FOR_UPDATE_SQL, {"user_id": user_id, "symbol": symbol})
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def save(self, db: AsyncSession, position: SpotPosition) -> None:
        await db.execute(
            _UPSERT_SQL,
            {
                "user_id": position.user_id,
                "symbol": position.symbol,
                "amount": position.amount,
                "avg_buy_price": position.avg_buy_price,
                "opened_at": position.opened_at,
            },
        )

    async def delete(self, db: AsyncSession, user_id: str, symbol: str) -> bool:
        result = await db.execute(_DELETE_SQL, {"user_id": user_id, "symbol": symbol})
        return result.fetchone() is not None

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[SpotPosition]:
        result = await db.execute(_LIST_SQL, {"user_id": user_id})
        return [_row_to_position(r) for r in result.fetchall()]
