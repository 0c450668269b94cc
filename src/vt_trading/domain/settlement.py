"""Spot trade economics. Pure functions, unrounded floats throughout."""

from datetime import datetime, timedelta

from src.vt_common.errors import InsufficientHoldingsError, InvalidAmountError
from src.vt_trading.domain.models import SpotPosition, TradeLimits, TradeQuote

DUST_EPSILON = 1e-8
VOLUME_ELIGIBILITY = timedelta(hours=1)


def quote(amount: float, price: float, fee_rate: float) -> TradeQuote:
    subtotal = amount * price
    fee = subtotal * fee_rate
    return TradeQuote(
        subtotal=subtotal,
        fee=fee,
        total_cost=subtotal + fee,
        payout=subtotal - fee,
    )


def limits(balance: float, price: float, holdings: float, fee_rate: float) -> TradeLimits:
    """maxBuy leaves room for the fee: (balance / price) / (1 + fee_rate)."""
    if price <= 0:
        return TradeLimits(max_buy=0.0, max_sell=0.0)
    max_buy = max(0.0, (balance / price) / (1 + fee_rate))
    return TradeLimits(max_buy=max_buy, max_sell=max(0.0, holdings))


def apply_buy(
    existing: SpotPosition | None,
    user_id: str,
    symbol: str,
    amount: float,
    price: float,
    now: datetime,
) -> SpotPosition:
    if amount <= 0:
        raise InvalidAmountError(amount)
    if existing is None:
        return SpotPosition(user_id, symbol, amount, price, now)
    new_amount = existing.amount + amount
    new_avg = (existing.amount * existing.avg_buy_price + amount * price) / new_amount
    return SpotPosition(user_id, symbol, new_amount, new_avg, now)


def apply_sell(position: SpotPosition, amount: float) -> SpotPosition | None:
    """Reduce the position. None means the remainder is dust and the row goes."""
    if amount <= 0:
        raise InvalidAmountError(amount)
    if amount > position.amount + DUST_EPSILON:
        raise InsufficientHoldingsError(position.symbol, amount, position.amount)
    remaining = position.amount - amount
    if remaining < DUST_EPSILON:
        return None
    return SpotPosition(
        position.user_id, position.symbol, remaining, position.avg_buy_price, position.opened_at
    )


def is_eligible_for_volume_credit(
    opened_at: datetime, now: datetime, min_hold: timedelta = VOLUME_ELIGIBILITY
) -> bool:
    """Sales of coins held under an hour don't count toward the unlock volume."""
    return now - opened_at >= min_hold
