"""LeveragedPositionRepository — leveraged_positions table.

UNIQUE (user_id, symbol) enforces one open position per coin. The insert uses
ON CONFLICT DO NOTHING so a duplicate is a clean 0-row result rather than an
aborted transaction. Liquidation deletes by row id with DELETE ... RETURNING:
only the caller that gets the row back books the loss, and a position reopened
on the same coin since the scan snapshot has a new id and is left alone.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_common.errors import DuplicateLeveragePositionError
from src.vt_leverage.domain.models import LeveragedPosition

_COLUMNS = (
    "id, user_id, symbol, amount, entry_price, leverage, "
    "liquidation_price, margin, opened_at"
)

_INSERT_SQL = text(f"""
    INSERT INTO leveraged_positions
        (user_id, symbol, amount, entry_price, leverage, liquidation_price, margin, opened_at)
    VALUES
        (:user_id, :symbol, :amount, :entry_price, :leverage,
         :liquidation_price, :margin, :opened_at)
    ON CONFLICT (user_id, symbol) DO NOTHING
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text(f"""
    DELETE FROM leveraged_positions
    WHERE user_id = :user_id AND symbol = :symbol
    RETURNING {_COLUMNS}
""")

_DELETE_BY_ID_SQL = text(f"""
    DELETE FROM leveraged_positions
    WHERE id = :id
    RETURNING {_COLUMNS}
""")

_LIST_OPEN_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM leveraged_positions
    ORDER BY id
""")


def _row_to_position(row: object) -> LeveragedPosition:
    return LeveragedPosition(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        amount=float(row.amount),  # type: ignore[attr-defined]
        entry_price=float(row.entry_price),  # type: ignore[attr-defined]
        leverage=int(row.leverage),  # type: ignore[attr-defined]
        liquidation_price=float(row.liquidation_price),  # type: ignore[attr-defined]
        margin=float(row.margin),  # type: ignore[attr-defined]
        opened_at=row.opened_at,  # type: ignore[attr-defined]
    )


class LeveragedPositionRepository:
    async def insert(self, db: AsyncSession, position: LeveragedPosition) -> LeveragedPosition:
        result = await db.execute(
            _INSERT_SQL,
            {
                "user_id": position.user_id,
                "symbol": position.symbol,
                "amount": position.amount,
                "entry_price": position.entry_price,
                "leverage": position.leverage,
                "liquidation_price": position.liquidation_price,
                "margin": position.margin,
                "opened_at": position.opened_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise DuplicateLeveragePositionError(position.symbol)
        return _row_to_position(row)

    async def delete(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> LeveragedPosition | None:
        result = await db.execute(_DELETE_SQL, {"user_id": user_id, "symbol": symbol})
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def delete_by_id(self, db: AsyncSession, position_id: int) -> LeveragedPosition | None:
        result = await db.execute(_DELETE_BY_ID_SQL, {"id": position_id})
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def list_open(self, db: AsyncSession) -> list[LeveragedPosition]:
        result = await db.execute(_LIST_OPEN_SQL)
        return [_row_to_position(r) for r in result.fetchall()]
