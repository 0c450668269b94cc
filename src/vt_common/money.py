"""Display formatting for euro amounts, coin amounts and percentages.

Display rounding lives here and nowhere else. Settlement math always works on
unrounded floats; only rent is floored, and that happens in the rent rule.
"""

COIN_DECIMALS = 8


def eur_to_display(amount: float) -> str:
    """Format euros for display: 6030.0 -> '6,030.00 €', -12.5 -> '-12.50 €'."""
    if amount < 0:
        return f"-{-amount:,.2f} €"
    return f"{amount:,.2f} €"


def coin_to_display(amount: float, symbol: str | None = None) -> str:
    """Format a coin amount with up to 8 decimals, trailing zeros stripped."""
    text = f"{amount:.{COIN_DECIMALS}f}".rstrip("0").rstrip(".") or "0"
    return f"{text} {symbol.upper()}" if symbol else text


def percent_to_display(percent: float) -> str:
    """Format a percentage with sign: 1.234 -> '+1.23%'."""
    return f"{percent:+.2f}%"


def fee_rate_to_display(fee_rate: float) -> str:
    """0.005 -> '0.5%'."""
    return f"{fee_rate * 100:.1f}%"
