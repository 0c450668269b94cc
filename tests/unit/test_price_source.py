"""Unit tests for the CryptoCompare price source (httpx.MockTransport, no network)."""

import httpx
import pytest

from src.vt_common.errors import FeedValidationError, TransientFeedError
from src.vt_market.domain.fallback import TRACKED_SYMBOLS
from src.vt_market.infrastructure.price_source import (
    CryptoComparePriceSource,
    parse_pricemultifull,
)
from tests.fakes import NOW


def _payload(btc: object = 61234.5) -> dict:
    return {
        "RAW": {
            "BTC": {"EUR": {"PRICE": btc, "CHANGEPCT24HOUR": 0.42}},
            "LTC": {"EUR": {"PRICE": 41.5, "CHANGEPCT24HOUR": -1.1}},
            "ETH": {"EUR": {"PRICE": 2150.0}},
        }
    }


def _make_source(handler, attempts: int = 2) -> CryptoComparePriceSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CryptoComparePriceSource(
        "https://prices.test/data/",
        attempts=attempts,
        backoff=lambda n: 0,
        client=client,
        clock=lambda: NOW,
    )


class TestParse:
    def test_complete_payload(self) -> None:
        quotes = parse_pricemultifull(_payload(), TRACKED_SYMBOLS, "EUR", NOW)
        assert quotes["bitcoin"].price == 61234.5
        assert quotes["litecoin"].change_24h == -1.1
        assert quotes["ethereum"].change_24h == 0.0
        assert quotes["bitcoin"].observed_at == NOW
        assert not quotes.has_fallback

    def test_missing_symbol(self) -> None:
        body = _payload()
        del body["RAW"]["ETH"]
        with pytest.raises(FeedValidationError):
            parse_pricemultifull(body, TRACKED_SYMBOLS, "EUR", NOW)

    @pytest.mark.parametrize("price", [0, -5.0, "abc", None, float("nan")])
    def test_rejects_bad_price(self, price: object) -> None:
        with pytest.raises(FeedValidationError):
            parse_pricemultifull(_payload(btc=price), TRACKED_SYMBOLS, "EUR", NOW)

    def test_error_response(self) -> None:
        body = {"Response": "Error", "Message": "rate limit"}
        with pytest.raises(FeedValidationError, match="rate limit"):
            parse_pricemultifull(body, TRACKED_SYMBOLS, "EUR", NOW)

    def test_not_an_object(self) -> None:
        with pytest.raises(FeedValidationError):
            parse_pricemultifull([1, 2], TRACKED_SYMBOLS, "EUR", NOW)


class TestFetch:
    async def test_requests_tickers_in_currency(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_payload())

        source = _make_source(handler)
        quotes = await source.fetch(TRACKED_SYMBOLS)
        await source.aclose()

        assert quotes["bitcoin"].price == 61234.5
        assert seen[0].url.path == "/data/pricemultifull"
        assert seen[0].url.params["fsyms"] == "BTC,LTC,ETH"
        assert seen[0].url.params["tsyms"] == "EUR"

    async def test_rate_limit_is_transient(self) -> None:
        source = _make_source(lambda r: httpx.Response(429), attempts=1)
        with pytest.raises(TransientFeedError, match="429"):
            await source.fetch(TRACKED_SYMBOLS)

    async def test_server_error_is_transient(self) -> None:
        source = _make_source(lambda r: httpx.Response(503), attempts=1)
        with pytest.raises(TransientFeedError, match="503"):
            await source.fetch(TRACKED_SYMBOLS)

    async def test_connection_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = _make_source(handler, attempts=1)
        with pytest.raises(TransientFeedError):
            await source.fetch(TRACKED_SYMBOLS)

    async def test_invalid_json(self) -> None:
        source = _make_source(lambda r: httpx.Response(200, content=b"<html>"), attempts=1)
        with pytest.raises(FeedValidationError):
            await source.fetch(TRACKED_SYMBOLS)

    async def test_retries_once_then_succeeds(self) -> None:
        responses = [httpx.Response(502), httpx.Response(200, json=_payload())]
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return responses.pop(0)

        source = _make_source(handler, attempts=2)
        quotes = await source.fetch(TRACKED_SYMBOLS)

        assert calls == 2
        assert quotes["litecoin"].price == 41.5

    async def test_gives_up_after_attempts(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        source = _make_source(handler, attempts=2)
        with pytest.raises(TransientFeedError):
            await source.fetch(TRACKED_SYMBOLS)
        assert calls == 2
