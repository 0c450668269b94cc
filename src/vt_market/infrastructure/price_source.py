"""CryptoCompare spot price source.

GET {base}/pricemultifull?fsyms=BTC,LTC,ETH&tsyms=EUR

    {"RAW": {"BTC": {"EUR": {"PRICE": 61234.5, "CHANGEPCT24HOUR": 0.42, ...}}, ...}}

Every call is bounded by the client timeout and retried through retry_async.
Anything short of a complete, positive, finite quote set is a FeedError.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from src.vt_common.datetime_utils import utc_now
from src.vt_common.errors import FeedValidationError, TransientFeedError
from src.vt_common.retry import DelayFn, exponential_delay, retry_async
from src.vt_market.domain.fallback import SYMBOL_TICKERS
from src.vt_market.domain.models import PriceQuote, QuoteSet

logger = logging.getLogger(__name__)


def _as_finite_float(value: Any, field_name: str, ticker: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise FeedValidationError(f"{ticker}: {field_name} is not a number: {value!r}") from None
    if not math.isfinite(number):
        raise FeedValidationError(f"{ticker}: {field_name} is not finite: {value!r}")
    return number


def parse_pricemultifull(
    payload: Any,
    symbols: tuple[str, ...],
    currency: str,
    observed_at: datetime,
) -> QuoteSet:
    """Validate a pricemultifull body and turn it into a QuoteSet."""
    if not isinstance(payload, dict):
        raise FeedValidationError("Response body is not a JSON object")
    if payload.get("Response") == "Error":
        raise FeedValidationError(f"Price source error: {payload.get('Message', 'unknown')}")
    raw = payload.get("RAW")
    if not isinstance(raw, dict):
        raise FeedValidationError("Response has no RAW section")

    quotes: dict[str, PriceQuote] = {}
    for symbol in symbols:
        ticker = SYMBOL_TICKERS[symbol]
        by_currency = raw.get(ticker)
        entry = by_currency.get(currency) if isinstance(by_currency, dict) else None
        if not isinstance(entry, dict):
            raise FeedValidationError(f"Missing quote for {ticker}/{currency}")
        price = _as_finite_float(entry.get("PRICE"), "PRICE", ticker)
        if price <= 0:
            raise FeedValidationError(f"{ticker}: non-positive price {price}")
        change = entry.get("CHANGEPCT24HOUR")
        change_pct = 0.0 if change is None else _as_finite_float(change, "CHANGEPCT24HOUR", ticker)
        quotes[symbol] = PriceQuote(symbol, price, change_pct, observed_at)
    return QuoteSet(quotes)


class CryptoComparePriceSource:
    def __init__(
        self,
        base_url: str,
        currency: str = "EUR",
        timeout: float = 15.0,
        attempts: int = 2,
        backoff: DelayFn | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._currency = currency.upper()
        self._attempts = attempts
        self._backoff = backoff or exponential_delay(base=1.0, cap=5.0)
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock

    async def fetch(self, symbols: tuple[str, ...]) -> QuoteSet:
        return await retry_async(
            lambda: self._fetch_once(symbols),
            attempts=self._attempts,
            delay=self._backoff,
            retry_on=(TransientFeedError,),
            what="price fetch",
        )

    async def _fetch_once(self, symbols: tuple[str, ...]) -> QuoteSet:
        params = {
            "fsyms": ",".join(SYMBOL_TICKERS[s] for s in symbols),
            "tsyms": self._currency,
        }
        try:
            resp = await self._client.get(f"{self._base_url}/pricemultifull", params=params)
        except httpx.TimeoutException as exc:
            raise TransientFeedError(f"Price source timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransientFeedError(f"Price source unreachable: {exc}") from exc

        if resp.status_code == 429:
            raise TransientFeedError("Price source rate limit hit (429)")
        if resp.status_code >= 400:
            raise TransientFeedError(f"Price source returned HTTP {resp.status_code}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise FeedValidationError("Response body is not valid JSON") from exc

        quotes = parse_pricemultifull(payload, symbols, self._currency, self._clock())
        logger.debug("Fetched %d quotes from price source", len(quotes))
        return quotes

    async def aclose(self) -> None:
        await self._client.aclose()
