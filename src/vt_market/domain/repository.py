"""Quote store and price source protocols."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_market.domain.models import PriceQuote, QuoteSet


class QuoteRepositoryProtocol(Protocol):
    async def upsert_quotes(self, db: AsyncSession, quotes: list[PriceQuote]) -> None: ...

    async def read_latest(self, db: AsyncSession) -> QuoteSet: ...


class PriceSourceProtocol(Protocol):
    async def fetch(self, symbols: tuple[str, ...]) -> QuoteSet:
        """Return a validated quote for every requested symbol or raise FeedError."""
        ...
