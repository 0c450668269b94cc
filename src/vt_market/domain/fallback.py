"""Tracked symbols and the static fallback price table."""

from datetime import datetime

from src.vt_market.domain.models import PriceQuote, QuoteSet

# coin id -> exchange ticker
SYMBOL_TICKERS: dict[str, str] = {
    "bitcoin": "BTC",
    "litecoin": "LTC",
    "ethereum": "ETH",
}

TRACKED_SYMBOLS: tuple[str, ...] = tuple(SYMBOL_TICKERS)

# coin id -> (price EUR, 24h change percent)
FALLBACK_PRICES: dict[str, tuple[float, float]] = {
    "bitcoin": (61500.0, 0.5),
    "litecoin": (41.20, -0.2),
    "ethereum": (2150.0, 1.2),
}


def fallback_quote(symbol: str, now: datetime) -> PriceQuote:
    price, change = FALLBACK_PRICES[symbol]
    return PriceQuote(symbol, price, change, now, is_fallback=True)


def fallback_quotes(now: datetime, symbols: tuple[str, ...] = TRACKED_SYMBOLS) -> QuoteSet:
    return QuoteSet({s: fallback_quote(s, now) for s in symbols})


def symbol_for_ticker(ticker: str) -> str | None:
    ticker = ticker.upper()
    for symbol, t in SYMBOL_TICKERS.items():
        if t == ticker:
            return symbol
    return None
