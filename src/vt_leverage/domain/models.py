"""Domain models for vt_leverage — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.vt_common.enums import RiskLevel


@dataclass
class LeveragedPosition:
    user_id: str
    symbol: str
    amount: float              # coins of notional exposure
    entry_price: float         # EUR per coin at open
    leverage: int              # 2..50
    liquidation_price: float   # entry x (1 - threshold / leverage)
    margin: float              # EUR actually debited (notional / leverage)
    opened_at: datetime
    id: int | None = None

    @property
    def notional(self) -> float:
        return self.amount * self.entry_price


@dataclass(frozen=True)
class RiskEvent:
    position: LeveragedPosition
    current_price: float
    price_change_pct: float           # percent, (current - entry) / entry x 100
    leveraged_pnl_pct: float          # percent, price change x leverage
    distance_to_liquidation_pct: float
    level: RiskLevel

    @property
    def liquidated(self) -> bool:
        return self.level is RiskLevel.LIQUIDATED
