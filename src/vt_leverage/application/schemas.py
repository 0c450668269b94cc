"""Pydantic schemas for vt_leverage results."""

from pydantic import BaseModel

from src.vt_common.money import eur_to_display
from src.vt_leverage.domain.models import LeveragedPosition


class LeverageOpenReceipt(BaseModel):
    symbol: str
    amount: float
    entry_price: float
    leverage: int
    margin: float
    fee: float
    liquidation_price: float
    liquidation_price_display: str
    balance_after: float
    achievements: list[str] = []

    @classmethod
    def build(
        cls,
        position: LeveragedPosition,
        fee: float,
        balance_after: float,
        achievements: list[str] | None = None,
    ) -> "LeverageOpenReceipt":
        return cls(
            symbol=position.symbol,
            amount=position.amount,
            entry_price=position.entry_price,
            leverage=position.leverage,
            margin=position.margin,
            fee=fee,
            liquidation_price=position.liquidation_price,
            liquidation_price_display=eur_to_display(position.liquidation_price),
            balance_after=balance_after,
            achievements=achievements or [],
        )


class LeverageCloseReceipt(BaseModel):
    symbol: str
    amount: float
    entry_price: float
    exit_price: float
    leverage: int
    pnl: float
    fee: float
    payout: float
    payout_display: str
    balance_after: float


class RiskScanReport(BaseModel):
    scanned: int = 0
    liquidated: int = 0
    warned: int = 0
    failed: int = 0
