"""LeverageService — open, close and force-close leveraged long positions.

open/close run in the caller's session. liquidate and run_risk_scan are driven
by the scheduler and open one session per position, so a failure on one
position never blocks the others.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.application.achievements import (
    HIGH_ROLLER,
    HIGH_ROLLER_LEVERAGE,
    AchievementService,
)
from src.vt_account.domain.repository import AccountRepositoryProtocol
from src.vt_account.infrastructure.persistence import AccountRepository
from src.vt_common.database import SessionFactory, atomic
from src.vt_common.datetime_utils import utc_now
from src.vt_common.enums import LedgerEntryType, NotificationKind, RiskLevel
from src.vt_common.errors import AppError, InvalidAmountError, LeveragePositionNotFoundError
from src.vt_common.money import eur_to_display
from src.vt_leverage.application.schemas import (
    LeverageCloseReceipt,
    LeverageOpenReceipt,
    RiskScanReport,
)
from src.vt_leverage.domain.engine import (
    LIQUIDATION_THRESHOLD,
    close_settlement,
    liquidation_price,
    margin_for,
    risk_scan,
    validate_leverage,
)
from src.vt_leverage.domain.models import LeveragedPosition, RiskEvent
from src.vt_leverage.domain.repository import LeveragedPositionRepositoryProtocol
from src.vt_leverage.infrastructure.persistence import LeveragedPositionRepository
from src.vt_market.application.feed import MarketFeed
from src.vt_notify.sink import NotificationSinkProtocol

logger = logging.getLogger(__name__)

_WARN_LEVELS = (RiskLevel.EXTREME, RiskLevel.HIGH)


class LeverageService:
    def __init__(
        self,
        feed: MarketFeed,
        session_factory: SessionFactory,
        notifier: NotificationSinkProtocol,
        fee_rate: float,
        min_leverage: int = 2,
        max_leverage: int = 50,
        threshold: float = LIQUIDATION_THRESHOLD,
        account_repo: AccountRepositoryProtocol | None = None,
        position_repo: LeveragedPositionRepositoryProtocol | None = None,
        achievements: AchievementService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._feed = feed
        self._session_factory = session_factory
        self._notifier = notifier
        self._fee_rate = fee_rate
        self._min_leverage = min_leverage
        self._max_leverage = max_leverage
        self._threshold = threshold
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._positions: LeveragedPositionRepositoryProtocol = (
            position_repo or LeveragedPositionRepository()
        )
        self._achievements = achievements or AchievementService(self._accounts)
        self._clock = clock

    async def open(
        self, db: AsyncSession, user_id: str, symbol: str, amount: float, leverage: float
    ) -> LeverageOpenReceipt:
        if amount <= 0:
            raise InvalidAmountError(amount)
        lev = validate_leverage(leverage, self._min_leverage, self._max_leverage)
        price_quote = await self._feed.get_quote(symbol)
        price = price_quote.price
        margin = margin_for(amount, price, lev)
        fee = amount * price * self._fee_rate

        candidate = LeveragedPosition(
            user_id=user_id,
            symbol=price_quote.symbol,
            amount=amount,
            entry_price=price,
            leverage=lev,
            liquidation_price=liquidation_price(price, lev, self._threshold),
            margin=margin,
            opened_at=self._clock(),
        )
        async with atomic(db):
            position = await self._positions.insert(db, candidate)
            balance = await self._accounts.adjust_balance(db, user_id, -(margin + fee))
            await self._accounts.append_ledger(
                db,
                user_id,
                LedgerEntryType.LEVERAGE_OPEN.value,
                -(margin + fee),
                balance,
                f"{lev}x Long {amount} {position.symbol} @ {price:.2f}",
                reference_id=position.symbol,
            )
            unlocked = None
            if lev >= HIGH_ROLLER_LEVERAGE:
                unlocked = await self._achievements.award(db, user_id, HIGH_ROLLER)
                if unlocked is not None:
                    balance += unlocked.reward

        logger.info(
            "User %s opened %dx %s %s @ %s, liquidation at %.2f",
            user_id, lev, amount, position.symbol, price, position.liquidation_price,
        )
        return LeverageOpenReceipt.build(
            position, fee, balance, [unlocked.id] if unlocked else None
        )

    async def close(self, db: AsyncSession, user_id: str, symbol: str) -> LeverageCloseReceipt:
        price_quote = await self._feed.get_quote(symbol)
        price = price_quote.price
        async with atomic(db):
            position = await self._positions.delete(db, user_id, price_quote.symbol)
            if position is None:
                raise LeveragePositionNotFoundError(price_quote.symbol)
            pnl, fee, payout = close_settlement(position, price, self._fee_rate)
            balance = await self._accounts.adjust_balance(db, user_id, payout)
            await self._accounts.append_ledger(
                db,
                user_id,
                LedgerEntryType.LEVERAGE_CLOSE.value,
                payout,
                balance,
                f"{position.leverage}x Long {position.symbol} closed, PnL {pnl:.2f}",
                reference_id=position.symbol,
            )

        logger.info("User %s closed %s position, payout %.2f", user_id, position.symbol, payout)
        return LeverageCloseReceipt(
            symbol=position.symbol,
            amount=position.amount,
            entry_price=position.entry_price,
            exit_price=price,
            leverage=position.leverage,
            pnl=pnl,
            fee=fee,
            payout=payout,
            payout_display=eur_to_display(payout),
            balance_after=balance,
        )

    async def liquidate(self, position: LeveragedPosition, current_price: float) -> bool:
        """Force-close by row id. Returns False when that row is already gone,
        including when the owner closed it and reopened on the same coin.

        The margin was debited at open, so the balance stays as is; the ledger
        records the lost margin for the history.
        """
        async with self._session_factory() as db:
            async with atomic(db):
                removed = await self._positions.delete_by_id(db, position.id)
                if removed is None:
                    return False
                loss = margin_for(removed.amount, removed.entry_price, removed.leverage)
                profile = await self._accounts.get_profile(db, removed.user_id)
                await self._accounts.append_ledger(
                    db,
                    removed.user_id,
                    LedgerEntryType.LIQUIDATION.value,
                    -loss,
                    profile.balance if profile else 0.0,
                    f"{removed.leverage}x Long {removed.symbol} liquidated @ {current_price:.2f}",
                    reference_id=removed.symbol,
                )

        logger.warning(
            "Liquidated %dx %s position of user %s @ %.2f (loss %.2f)",
            removed.leverage, removed.symbol, removed.user_id, current_price, loss,
        )
        await self._notifier.notify(
            removed.user_id,
            NotificationKind.LIQUIDATION,
            {
                "symbol": removed.symbol,
                "amount": removed.amount,
                "leverage": removed.leverage,
                "entry_price": removed.entry_price,
                "liquidation_price": removed.liquidation_price,
                "current_price": current_price,
                "loss": loss,
            },
        )
        return True

    async def run_risk_scan(self) -> RiskScanReport:
        report = RiskScanReport()
        async with self._session_factory() as db:
            positions = await self._positions.list_open(db)
        if not positions:
            return report

        quotes = await self._feed.read(bypass_short_cache=True)
        if quotes.has_fallback:
            logger.warning(
                "Risk scan over %d positions is using fallback prices for %s",
                len(positions),
                sorted(s for s, q in quotes.items() if q.is_fallback),
            )
        for event in risk_scan(positions, quotes.prices()):
            report.scanned += 1
            if event.liquidated:
                try:
                    if await self.liquidate(event.position, event.current_price):
                        report.liquidated += 1
                except AppError:
                    report.failed += 1
                    logger.exception(
                        "Liquidation failed for user %s %s",
                        event.position.user_id, event.position.symbol,
                    )
            elif event.level in _WARN_LEVELS:
                await self._warn(event)
                report.warned += 1

        logger.info("Risk scan finished: %s", report.model_dump())
        return report

    async def _warn(self, event: RiskEvent) -> None:
        position = event.position
        await self._notifier.notify(
            position.user_id,
            NotificationKind.LIQUIDATION_WARNING,
            {
                "symbol": position.symbol,
                "leverage": position.leverage,
                "level": event.level.value,
                "current_price": event.current_price,
                "liquidation_price": position.liquidation_price,
                "distance_pct": round(event.distance_to_liquidation_pct, 2),
                "pnl_pct": round(event.leveraged_pnl_pct, 2),
            },
        )
