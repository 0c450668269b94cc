"""Unit tests for leverage math and the risk scan."""

import pytest

from src.vt_common.enums import RiskLevel
from src.vt_common.errors import InvalidLeverageError
from src.vt_leverage.domain.engine import (
    classify,
    close_settlement,
    evaluate_position,
    liquidation_price,
    margin_for,
    risk_scan,
    validate_leverage,
)
from src.vt_leverage.domain.models import LeveragedPosition
from tests.fakes import NOW


def _make_position(
    entry: float = 60000.0, leverage: int = 10, amount: float = 0.1, symbol: str = "bitcoin"
) -> LeveragedPosition:
    return LeveragedPosition(
        user_id="u1",
        symbol=symbol,
        amount=amount,
        entry_price=entry,
        leverage=leverage,
        liquidation_price=liquidation_price(entry, leverage),
        margin=margin_for(amount, entry, leverage),
        opened_at=NOW,
    )


class TestLiquidationPrice:
    def test_reference_scenario(self) -> None:
        assert liquidation_price(60000.0, 10) == pytest.approx(54600.0)

    def test_closer_to_entry_as_leverage_grows(self) -> None:
        levels = [2, 5, 10, 20, 50]
        prices = [liquidation_price(60000.0, lev) for lev in levels]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)
        assert all(p < 60000.0 for p in prices)

    def test_margin_is_notional_over_leverage(self) -> None:
        assert margin_for(0.1, 60000.0, 10) == pytest.approx(600.0)


class TestValidateLeverage:
    @pytest.mark.parametrize("lev", [2, 7, 50])
    def test_accepts_range(self, lev: int) -> None:
        assert validate_leverage(lev, 2, 50) == lev

    @pytest.mark.parametrize("lev", [1, 51, 2.5])
    def test_rejects_outside_range_or_fractional(self, lev: float) -> None:
        with pytest.raises(InvalidLeverageError):
            validate_leverage(lev, 2, 50)


class TestClassify:
    def test_at_liquidation_price_is_liquidated(self) -> None:
        assert classify(54600.0, 54600.0, 0.0) is RiskLevel.LIQUIDATED

    def test_tiers(self) -> None:
        assert classify(100.0, 90.0, 4.99) is RiskLevel.EXTREME
        assert classify(100.0, 90.0, 5.0) is RiskLevel.HIGH
        assert classify(100.0, 90.0, 14.99) is RiskLevel.HIGH
        assert classify(100.0, 90.0, 15.0) is RiskLevel.MEDIUM


class TestEvaluatePosition:
    def test_percentages(self) -> None:
        event = evaluate_position(_make_position(), 57000.0)
        assert event.price_change_pct == pytest.approx(-5.0)
        assert event.leveraged_pnl_pct == pytest.approx(-50.0)
        assert event.distance_to_liquidation_pct == pytest.approx((57000 - 54600) / 54600 * 100)
        assert event.level is RiskLevel.EXTREME

    def test_liquidated_iff_at_or_below(self) -> None:
        pos = _make_position()
        assert evaluate_position(pos, 54600.0).liquidated
        assert evaluate_position(pos, 54000.0).liquidated
        assert not evaluate_position(pos, 54600.01).liquidated


class TestRiskScan:
    def test_skips_positions_without_price(self) -> None:
        positions = [_make_position(), _make_position(entry=2000.0, symbol="ethereum")]
        events = list(risk_scan(positions, {"bitcoin": 70000.0}))
        assert len(events) == 1
        assert events[0].position.symbol == "bitcoin"
        assert events[0].level is RiskLevel.MEDIUM

    def test_repeatable_without_side_effects(self) -> None:
        positions = [_make_position()]
        first = [e.level for e in risk_scan(positions, {"bitcoin": 50000.0})]
        second = [e.level for e in risk_scan(positions, {"bitcoin": 50000.0})]
        assert first == second == [RiskLevel.LIQUIDATED]
        assert positions[0].liquidation_price == pytest.approx(54600.0)


class TestCloseSettlement:
    def test_profit(self) -> None:
        pnl, fee, payout = close_settlement(_make_position(), 66000.0, 0.005)
        assert pnl == pytest.approx(600.0)
        assert fee == pytest.approx(0.1 * 66000.0 * 0.005)
        assert payout == pytest.approx(600.0 + 600.0 - fee)

    def test_loss_capped_at_margin(self) -> None:
        _, _, payout = close_settlement(_make_position(), 40000.0, 0.005)
        assert payout == 0.0
