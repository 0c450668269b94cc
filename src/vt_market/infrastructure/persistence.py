"""QuoteRepository — market_cache table, one row per symbol.

All rows of a refresh are upserted inside the caller's transaction so readers
never observe a half-updated quote set.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_market.domain.models import PriceQuote, QuoteSet

_UPSERT_QUOTE_SQL = text("""
    INSERT INTO market_cache (symbol, price, change_24h, observed_at, is_fallback)
    VALUES (:symbol, :price, :change_24h, :observed_at, :is_fallback)
    ON CONFLICT (symbol) DO UPDATE
        SET price       = EXCLUDED.price,
            change_24h  = EXCLUDED.change_24h,
            observed_at = EXCLUDED.observed_at,
            is_fallback = EXCLUDED.is_fallback,
            updated_at  = NOW()
""")

_READ_LATEST_SQL = text("""
    SELECT symbol, price, change_24h, observed_at, is_fallback
    FROM market_cache
""")


def _row_to_quote(row: object) -> PriceQuote:
    return PriceQuote(
        symbol=row.symbol,  # type: ignore[attr-defined]
        price=float(row.price),  # type: ignore[attr-defined]
        change_24h=float(row.change_24h),  # type: ignore[attr-defined]
        observed_at=row.observed_at,  # type: ignore[attr-defined]
        is_fallback=bool(row.is_fallback),  # type: ignore[attr-defined]
    )


class QuoteRepository:
    async def upsert_quotes(self, db: AsyncSession, quotes: list[PriceQuote]) -> None:
        if not quotes:
            return
        await db.execute(
            _UPSERT_QUOTE_SQL,
            [
                {
                    "symbol": q.symbol,
                    "price": q.price,
                    "change_24h": q.change_24h,
                    "observed_at": q.observed_at,
                    "is_fallback": q.is_fallback,
                }
                for q in quotes
            ],
        )

    async def read_latest(self, db: AsyncSession) -> QuoteSet:
        result = await db.execute(_READ_LATEST_SQL)
        return QuoteSet({q.symbol: q for q in map(_row_to_quote, result.fetchall())})
