"""Unit tests for MarketFeed refresh/read degradation."""

import logging
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.vt_common.errors import PersistenceError, TransientFeedError, UnknownSymbolError
from src.vt_market.application.feed import MarketFeed
from src.vt_market.domain.fallback import FALLBACK_PRICES
from src.vt_market.domain.models import PriceQuote
from tests.fakes import NOW, FakeSessionFactory, InMemoryQuoteRepository, make_quotes


class FakeClock:
    def __init__(self) -> None:
        self.now = NOW
        self.mono = 1000.0

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
        self.mono += seconds


def _make_feed(
    source: AsyncMock,
    repo: InMemoryQuoteRepository,
    clock: FakeClock,
    session_factory: FakeSessionFactory | None = None,
) -> MarketFeed:
    return MarketFeed(
        source,
        session_factory or FakeSessionFactory(),
        repo=repo,
        clock=lambda: clock.now,
        monotonic=lambda: clock.mono,
    )


class TestRefresh:
    async def test_success_stores_and_resets_streak(self) -> None:
        source = AsyncMock()
        source.fetch.return_value = make_quotes()
        repo = InMemoryQuoteRepository()
        clock = FakeClock()
        feed = _make_feed(source, repo, clock)

        quotes = await feed.refresh()

        assert quotes["bitcoin"].price == 60000.0
        assert repo.rows["ethereum"].price == 2000.0
        status = feed.status()
        assert status.attempts == 1
        assert status.consecutive_failures == 0
        assert status.last_success == NOW
        assert not feed.needs_refresh()

    async def test_threshold_failures_write_fallback(self) -> None:
        source = AsyncMock()
        source.fetch.side_effect = TransientFeedError("HTTP 503")
        repo = InMemoryQuoteRepository()
        feed = _make_feed(source, repo, FakeClock())

        for _ in range(2):
            with pytest.raises(TransientFeedError):
                await feed.refresh()
        assert repo.writes == []

        with pytest.raises(TransientFeedError):
            await feed.refresh()

        assert len(repo.writes) == 1
        assert repo.rows["bitcoin"].price == FALLBACK_PRICES["bitcoin"][0]
        assert repo.rows["bitcoin"].is_fallback
        assert feed.status().consecutive_failures == 3
        assert feed.status().last_error == "HTTP 503"

    async def test_read_after_threshold_failures_serves_fallback(self) -> None:
        source = AsyncMock()
        source.fetch.return_value = make_quotes()
        repo = InMemoryQuoteRepository()
        feed = _make_feed(source, repo, FakeClock())
        await feed.refresh()
        assert not (await feed.read()).has_fallback

        source.fetch.side_effect = TransientFeedError("HTTP 503")
        for _ in range(3):
            with pytest.raises(TransientFeedError):
                await feed.refresh()
        quotes = await feed.read()

        assert quotes.has_fallback
        assert {s: q.price for s, q in quotes.items()} == {
            s: price for s, (price, _) in FALLBACK_PRICES.items()
        }

    async def test_success_after_failures_clears_streak(self) -> None:
        source = AsyncMock()
        source.fetch.side_effect = [TransientFeedError("boom"), make_quotes()]
        feed = _make_feed(source, InMemoryQuoteRepository(), FakeClock())

        with pytest.raises(TransientFeedError):
            await feed.refresh()
        await feed.refresh()

        assert feed.status().consecutive_failures == 0
        assert feed.status().last_error is None

    async def test_store_failure_counts_as_failure(self) -> None:
        source = AsyncMock()
        source.fetch.return_value = make_quotes()
        repo = AsyncMock()
        repo.upsert_quotes.side_effect = PersistenceError()
        feed = _make_feed(source, repo, FakeClock())

        with pytest.raises(PersistenceError):
            await feed.refresh()

        assert feed.status().consecutive_failures == 1

    async def test_cancelled_fetch_is_discarded(self) -> None:
        source = AsyncMock()
        source.fetch.return_value = make_quotes()
        repo = InMemoryQuoteRepository()
        feed = _make_feed(source, repo, FakeClock())

        assert await feed.refresh(is_cancelled=lambda: True) is None
        assert repo.writes == []
        assert feed.status().last_success is None


class TestRead:
    async def test_empty_store_serves_fallback(self) -> None:
        feed = _make_feed(AsyncMock(), InMemoryQuoteRepository(), FakeClock())

        quotes = await feed.read()

        assert set(quotes) == {"bitcoin", "litecoin", "ethereum"}
        assert quotes.has_fallback
        assert all(price > 0 for price in quotes.prices().values())

    async def test_fills_gaps_and_non_positive_prices(self) -> None:
        repo = InMemoryQuoteRepository(
            [PriceQuote("bitcoin", 70000.0, 1.0, NOW), PriceQuote("litecoin", 0.0, 0.0, NOW)]
        )
        feed = _make_feed(AsyncMock(), repo, FakeClock())

        quotes = await feed.read()

        assert quotes["bitcoin"].price == 70000.0
        assert quotes["litecoin"].is_fallback
        assert quotes["ethereum"].is_fallback

    async def test_short_cache_until_ttl(self) -> None:
        repo = InMemoryQuoteRepository([PriceQuote("bitcoin", 70000.0, 1.0, NOW)])
        clock = FakeClock()
        feed = _make_feed(AsyncMock(), repo, clock)

        await feed.read()
        repo.rows["bitcoin"] = PriceQuote("bitcoin", 71000.0, 1.0, NOW)
        assert (await feed.read())["bitcoin"].price == 70000.0
        assert (await feed.read(bypass_short_cache=True))["bitcoin"].price == 71000.0

        repo.rows["bitcoin"] = PriceQuote("bitcoin", 72000.0, 1.0, NOW)
        clock.advance(11)
        assert (await feed.read())["bitcoin"].price == 72000.0

    async def test_stale_quotes_are_served_with_warning(self, caplog) -> None:
        repo = InMemoryQuoteRepository(
            [PriceQuote(s, 100.0, 0.0, NOW) for s in ("bitcoin", "litecoin", "ethereum")]
        )
        clock = FakeClock()
        clock.advance(600)
        feed = _make_feed(AsyncMock(), repo, clock)

        with caplog.at_level(logging.WARNING, logger="src.vt_market.application.feed"):
            quotes = await feed.read()

        assert quotes["bitcoin"].price == 100.0
        assert "stale" in caplog.text

    async def test_unreadable_store_serves_fallback(self) -> None:
        repo = AsyncMock()
        repo.read_latest.side_effect = PersistenceError()
        feed = _make_feed(AsyncMock(), repo, FakeClock())

        quotes = await feed.read()

        assert quotes.has_fallback


class TestGetQuote:
    @pytest.mark.parametrize("symbol", ["bitcoin", "BTC", "btc", " Bitcoin "])
    async def test_by_id_or_ticker(self, symbol: str) -> None:
        repo = InMemoryQuoteRepository([PriceQuote("bitcoin", 70000.0, 1.0, NOW)])
        feed = _make_feed(AsyncMock(), repo, FakeClock())

        quote = await feed.get_quote(symbol)

        assert quote.symbol == "bitcoin"
        assert quote.price == 70000.0

    async def test_unknown_symbol(self) -> None:
        feed = _make_feed(AsyncMock(), InMemoryQuoteRepository(), FakeClock())
        with pytest.raises(UnknownSymbolError):
            await feed.get_quote("dogecoin")


class TestNeedsRefresh:
    async def test_after_staleness_ceiling(self) -> None:
        source = AsyncMock()
        source.fetch.return_value = make_quotes()
        clock = FakeClock()
        feed = _make_feed(source, InMemoryQuoteRepository(), clock)

        assert feed.needs_refresh()
        await feed.refresh()
        clock.advance(299)
        assert not feed.needs_refresh()
        clock.advance(1)
        assert feed.needs_refresh()
