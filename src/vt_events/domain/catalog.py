"""Market news events. The effect is informational: quotes come only from the price source."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MarketEvent:
    id: str
    message: str
    effect: float   # sentiment multiplier shown to players, e.g. 1.12 = +12%

    @property
    def effect_pct(self) -> float:
        return (self.effect - 1) * 100


MARKET_EVENTS: tuple[MarketEvent, ...] = (
    MarketEvent("bull_run", "Institutional investors buying BTC massively", 1.12),
    MarketEvent("crash", "Major exchange hacked", 0.85),
    MarketEvent("regulation", "EU plans strict crypto regulation", 0.92),
    MarketEvent("adoption", "Fortune 500 company accepts crypto payments", 1.08),
    MarketEvent("elon", "Tech billionaire posts cryptic crypto meme", 1.05),
)
