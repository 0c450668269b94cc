"""Tests for vt_common.money display helpers."""

from src.vt_common.money import (
    coin_to_display,
    eur_to_display,
    fee_rate_to_display,
    percent_to_display,
)


class TestEurToDisplay:
    def test_thousands_separator(self) -> None:
        assert eur_to_display(6030.0) == "6,030.00 €"

    def test_negative(self) -> None:
        assert eur_to_display(-12.5) == "-12.50 €"

    def test_zero(self) -> None:
        assert eur_to_display(0.0) == "0.00 €"


class TestCoinToDisplay:
    def test_strips_trailing_zeros(self) -> None:
        assert coin_to_display(0.1) == "0.1"

    def test_eight_decimals(self) -> None:
        assert coin_to_display(0.123456789, "btc") == "0.12345679 BTC"

    def test_dust_rounds_to_zero(self) -> None:
        assert coin_to_display(1e-10) == "0"


class TestPercent:
    def test_signed(self) -> None:
        assert percent_to_display(1.234) == "+1.23%"
        assert percent_to_display(-5.0) == "-5.00%"

    def test_fee_rate(self) -> None:
        assert fee_rate_to_display(0.005) == "0.5%"
