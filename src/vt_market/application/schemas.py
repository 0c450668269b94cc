"""Pydantic schemas for vt_market API."""

from pydantic import BaseModel

from src.vt_common.money import eur_to_display, percent_to_display
from src.vt_market.domain.fallback import SYMBOL_TICKERS
from src.vt_market.domain.models import FeedStatus, PriceQuote, QuoteSet


class QuoteItem(BaseModel):
    symbol: str
    ticker: str
    price: float
    price_display: str
    change_24h: float
    change_24h_display: str
    observed_at: str
    is_fallback: bool

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "QuoteItem":
        return cls(
            symbol=quote.symbol,
            ticker=SYMBOL_TICKERS.get(quote.symbol, quote.symbol.upper()),
            price=quote.price,
            price_display=eur_to_display(quote.price),
            change_24h=quote.change_24h,
            change_24h_display=percent_to_display(quote.change_24h),
            observed_at=quote.observed_at.isoformat(),
            is_fallback=quote.is_fallback,
        )


class FeedStatusResponse(BaseModel):
    last_success: str | None
    attempts: int
    consecutive_failures: int
    last_error: str | None

    @classmethod
    def from_status(cls, status: FeedStatus) -> "FeedStatusResponse":
        return cls(
            last_success=status.last_success.isoformat() if status.last_success else None,
            attempts=status.attempts,
            consecutive_failures=status.consecutive_failures,
            last_error=status.last_error,
        )


class MarketResponse(BaseModel):
    quotes: list[QuoteItem]
    has_fallback: bool
    feed: FeedStatusResponse

    @classmethod
    def build(cls, quotes: QuoteSet, status: FeedStatus) -> "MarketResponse":
        return cls(
            quotes=[QuoteItem.from_quote(q) for q in quotes.values()],
            has_fallback=quotes.has_fallback,
            feed=FeedStatusResponse.from_status(status),
        )
