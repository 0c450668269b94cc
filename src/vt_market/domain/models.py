"""Domain models for vt_market — pure dataclasses, no I/O."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PriceQuote:
    symbol: str              # coin id, e.g. "bitcoin"
    price: float             # EUR, always > 0
    change_24h: float        # percent, e.g. 0.5 means +0.5%
    observed_at: datetime
    is_fallback: bool = False


@dataclass(frozen=True)
class QuoteSet(Mapping[str, PriceQuote]):
    """Immutable symbol -> quote mapping handed to readers."""

    quotes: dict[str, PriceQuote] = field(default_factory=dict)

    def __getitem__(self, symbol: str) -> PriceQuote:
        return self.quotes[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self.quotes)

    def __len__(self) -> int:
        return len(self.quotes)

    def prices(self) -> dict[str, float]:
        return {s: q.price for s, q in self.quotes.items()}

    def oldest_observation(self) -> datetime | None:
        if not self.quotes:
            return None
        return min(q.observed_at for q in self.quotes.values())

    @property
    def has_fallback(self) -> bool:
        return any(q.is_fallback for q in self.quotes.values())


@dataclass
class FeedStatus:
    last_success: datetime | None = None
    attempts: int = 0
    consecutive_failures: int = 0
    last_error: str | None = None
