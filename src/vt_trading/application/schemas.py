"""Pydantic receipts returned by TradingService to the calling layer."""

from pydantic import BaseModel

from src.vt_common.money import coin_to_display, eur_to_display, fee_rate_to_display
from src.vt_trading.domain.models import TradeLimits


class TradeInfoResponse(BaseModel):
    symbol: str
    price: float
    price_display: str
    balance: float
    holdings: float
    max_buy: float
    max_sell: float
    fee_rate: float
    fee_rate_display: str

    @classmethod
    def build(
        cls,
        symbol: str,
        price: float,
        balance: float,
        holdings: float,
        lim: TradeLimits,
        fee_rate: float,
    ) -> "TradeInfoResponse":
        return cls(
            symbol=symbol,
            price=price,
            price_display=eur_to_display(price),
            balance=balance,
            holdings=holdings,
            max_buy=lim.max_buy,
            max_sell=lim.max_sell,
            fee_rate=fee_rate,
            fee_rate_display=fee_rate_to_display(fee_rate),
        )


class TradeReceipt(BaseModel):
    side: str            # "buy" | "sell"
    symbol: str
    amount: float
    amount_display: str
    price: float
    subtotal: float
    fee: float
    total: float         # buy: total cost; sell: payout
    total_display: str
    balance_after: float
    balance_after_display: str
    position_amount: float
    avg_buy_price: float | None = None
    volume_credited: float = 0.0
    achievements: list[str] = []

    @classmethod
    def build(
        cls,
        side: str,
        symbol: str,
        amount: float,
        price: float,
        subtotal: float,
        fee: float,
        total: float,
        balance_after: float,
        position_amount: float,
        avg_buy_price: float | None,
        volume_credited: float = 0.0,
        achievements: list[str] | None = None,
    ) -> "TradeReceipt":
        return cls(
            side=side,
            symbol=symbol,
            amount=amount,
            amount_display=coin_to_display(amount),
            price=price,
            subtotal=subtotal,
            fee=fee,
            total=total,
            total_display=eur_to_display(total),
            balance_after=balance_after,
            balance_after_display=eur_to_display(balance_after),
            position_amount=position_amount,
            avg_buy_price=avg_buy_price,
            volume_credited=volume_credited,
            achievements=achievements or [],
        )
