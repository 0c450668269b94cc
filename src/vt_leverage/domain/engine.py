"""Leveraged position math and the read-only risk scan.

Nothing in here touches storage. risk_scan may run any number of times over
the same positions; only LeverageService.liquidate mutates state.
"""

from collections.abc import Iterable, Iterator, Mapping

from src.vt_common.enums import RiskLevel
from src.vt_common.errors import InvalidLeverageError
from src.vt_leverage.domain.models import LeveragedPosition, RiskEvent

LIQUIDATION_THRESHOLD = 0.9

# Distance-to-liquidation tiers, in percent.
EXTREME_DISTANCE_PCT = 5.0
HIGH_DISTANCE_PCT = 15.0


def validate_leverage(leverage: float, minimum: int, maximum: int) -> int:
    if leverage != int(leverage) or not (minimum <= leverage <= maximum):
        raise InvalidLeverageError(leverage, minimum, maximum)
    return int(leverage)


def liquidation_price(
    entry_price: float, leverage: float, threshold: float = LIQUIDATION_THRESHOLD
) -> float:
    """Price at which `threshold` of the margin is gone. Long positions only."""
    return entry_price * (1 - threshold / leverage)


def margin_for(amount: float, price: float, leverage: float) -> float:
    return amount * price / leverage


def classify(current_price: float, liq_price: float, distance_pct: float) -> RiskLevel:
    if current_price <= liq_price:
        return RiskLevel.LIQUIDATED
    if distance_pct < EXTREME_DISTANCE_PCT:
        return RiskLevel.EXTREME
    if distance_pct < HIGH_DISTANCE_PCT:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def evaluate_position(position: LeveragedPosition, current_price: float) -> RiskEvent:
    price_change = (current_price - position.entry_price) / position.entry_price * 100
    distance = (
        (current_price - position.liquidation_price) / position.liquidation_price * 100
    )
    return RiskEvent(
        position=position,
        current_price=current_price,
        price_change_pct=price_change,
        leveraged_pnl_pct=price_change * position.leverage,
        distance_to_liquidation_pct=distance,
        level=classify(current_price, position.liquidation_price, distance),
    )


def risk_scan(
    positions: Iterable[LeveragedPosition], prices: Mapping[str, float]
) -> Iterator[RiskEvent]:
    """One event per position that has a current price; the rest are skipped."""
    for position in positions:
        price = prices.get(position.symbol)
        if price is None or price <= 0:
            continue
        yield evaluate_position(position, price)


def close_settlement(
    position: LeveragedPosition, current_price: float, fee_rate: float
) -> tuple[float, float, float]:
    """Owner exit at current_price: returns (pnl, fee, payout).

    The payout is margin + pnl - fee and never goes below zero; the loss is
    capped at the margin that was put up.
    """
    pnl = position.amount * (current_price - position.entry_price)
    fee = position.amount * current_price * fee_rate
    payout = max(0.0, position.margin + pnl - fee)
    return pnl, fee, payout
