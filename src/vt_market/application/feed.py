"""MarketFeed — the single writer of the market_cache table.

Reads never come back empty. Each one degrades along
live cache -> stale cache (with a warning) -> static fallback table,
because settlement and liquidation both need some price to decide on.
"""

import asyncio
import dataclasses
import logging
import time
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from src.vt_common.database import SessionFactory, atomic
from src.vt_common.datetime_utils import utc_now
from src.vt_common.errors import FeedError, PersistenceError, UnknownSymbolError
from src.vt_market.domain.fallback import (
    TRACKED_SYMBOLS,
    fallback_quote,
    fallback_quotes,
    symbol_for_ticker,
)
from src.vt_market.domain.models import FeedStatus, PriceQuote, QuoteSet
from src.vt_market.domain.repository import PriceSourceProtocol, QuoteRepositoryProtocol
from src.vt_market.infrastructure.persistence import QuoteRepository

logger = logging.getLogger(__name__)


class MarketFeed:
    def __init__(
        self,
        source: PriceSourceProtocol,
        session_factory: SessionFactory,
        repo: QuoteRepositoryProtocol | None = None,
        symbols: tuple[str, ...] = TRACKED_SYMBOLS,
        failure_threshold: int = 3,
        short_cache_ttl: float = 10.0,
        staleness_ceiling: float = 300.0,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._session_factory = session_factory
        self._repo: QuoteRepositoryProtocol = repo or QuoteRepository()
        self._symbols = symbols
        self._failure_threshold = failure_threshold
        self._short_cache_ttl = short_cache_ttl
        self._staleness_ceiling = staleness_ceiling
        self._clock = clock
        self._monotonic = monotonic

        self._lock = asyncio.Lock()
        self._status = FeedStatus()
        self._short_cache: QuoteSet | None = None
        self._short_cache_at = 0.0

    @property
    def staleness_ceiling(self) -> float:
        return self._staleness_ceiling

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def refresh(self, is_cancelled: Callable[[], bool] | None = None) -> QuoteSet | None:
        """Fetch, validate and store a fresh quote set.

        Returns None when `is_cancelled` reports that the owner stopped while
        the fetch was in flight; the fetched quotes are then discarded.
        Raises FeedError or PersistenceError after recording the failure.
        """
        async with self._lock:
            self._status.attempts += 1
            try:
                quotes = await self._source.fetch(self._symbols)
                if is_cancelled is not None and is_cancelled():
                    logger.info("Discarding fetched quotes: feed owner stopped")
                    return None
                await self._store(list(quotes.values()))
            except (FeedError, PersistenceError) as exc:
                await self._record_failure(exc)
                raise

            self._status.consecutive_failures = 0
            self._status.last_error = None
            self._status.last_success = self._clock()
            self.invalidate()
            logger.info("Market refreshed: %s", quotes.prices())
            return quotes

    async def _store(self, quotes: list[PriceQuote]) -> None:
        async with self._session_factory() as db:
            async with atomic(db):
                await self._repo.upsert_quotes(db, quotes)

    async def _record_failure(self, exc: Exception) -> None:
        self._status.consecutive_failures += 1
        self._status.last_error = str(exc)
        logger.warning(
            "Market refresh failed (%d consecutive): %s",
            self._status.consecutive_failures,
            exc,
        )
        if self._status.consecutive_failures < self._failure_threshold:
            return
        logger.error(
            "Market feed down for %d attempts, writing fallback prices",
            self._status.consecutive_failures,
        )
        try:
            await self._store(list(fallback_quotes(self._clock(), self._symbols).values()))
        except PersistenceError:
            logger.exception("Could not write fallback prices")
        self.invalidate()

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def read(self, bypass_short_cache: bool = False) -> QuoteSet:
        if (
            not bypass_short_cache
            and self._short_cache is not None
            and self._monotonic() - self._short_cache_at < self._short_cache_ttl
        ):
            return self._short_cache

        try:
            async with self._session_factory() as db:
                stored = await self._repo.read_latest(db)
        except (SQLAlchemyError, PersistenceError) as exc:
            logger.error("Quote store unreadable, serving fallback prices: %s", exc)
            return fallback_quotes(self._clock(), self._symbols)

        quotes = self._complete(stored)
        self._warn_if_stale(quotes)
        self._short_cache = quotes
        self._short_cache_at = self._monotonic()
        return quotes

    def _complete(self, stored: QuoteSet) -> QuoteSet:
        """Keep tracked symbols only and fill the gaps from the fallback table."""
        now = self._clock()
        merged: dict[str, PriceQuote] = {}
        for symbol in self._symbols:
            quote = stored.get(symbol)
            if quote is None or quote.price <= 0:
                logger.warning("No cached quote for %s, using fallback", symbol)
                quote = fallback_quote(symbol, now)
            merged[symbol] = quote
        return QuoteSet(merged)

    def _warn_if_stale(self, quotes: QuoteSet) -> None:
        oldest = quotes.oldest_observation()
        if oldest is None:
            return
        age = (self._clock() - oldest).total_seconds()
        if age >= self._staleness_ceiling:
            logger.warning("Serving stale quotes: oldest is %.0fs old", age)

    async def get_quote(self, symbol: str) -> PriceQuote:
        """Case-insensitive lookup by coin id ("bitcoin") or ticker ("BTC")."""
        key = symbol.strip().lower()
        if key not in self._symbols:
            key = symbol_for_ticker(key) or key
        if key not in self._symbols:
            raise UnknownSymbolError(symbol)
        quotes = await self.read()
        return quotes[key]

    def invalidate(self) -> None:
        self._short_cache = None

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def status(self) -> FeedStatus:
        return dataclasses.replace(self._status)

    def needs_refresh(self) -> bool:
        """True when there was never a successful refresh or the last one is too old."""
        last = self._status.last_success
        if last is None:
            return True
        return (self._clock() - last).total_seconds() >= self._staleness_ceiling
