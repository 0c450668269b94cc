"""Domain models for vt_trading — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class SpotPosition:
    user_id: str
    symbol: str
    amount: float            # coins, > 0 while the row exists
    avg_buy_price: float     # EUR per coin, weighted average cost basis
    opened_at: datetime      # restarts on every top-up buy


@dataclass(frozen=True)
class TradeQuote:
    subtotal: float    # amount x price
    fee: float         # subtotal x fee rate
    total_cost: float  # buy side: subtotal + fee
    payout: float      # sell side: subtotal - fee


@dataclass(frozen=True)
class TradeLimits:
    max_buy: float
    max_sell: float
