"""TradingService — spot buy/sell against the cached market price.

Every trade is one unit of work: balance, position, ledger, trading volume and
achievement rows commit together or not at all. Insufficient balance or
holdings are detected by the guarded statements and roll everything back.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.application.achievements import FIRST_TRADE, AchievementService
from src.vt_account.domain.repository import AccountRepositoryProtocol
from src.vt_account.infrastructure.persistence import AccountRepository
from src.vt_common.database import atomic
from src.vt_common.datetime_utils import utc_now
from src.vt_common.enums import LedgerEntryType
from src.vt_common.errors import (
    InsufficientHoldingsError,
    InvalidAmountError,
    ProfileNotFoundError,
)
from src.vt_common.money import coin_to_display
from src.vt_market.application.feed import MarketFeed
from src.vt_trading.application.schemas import TradeInfoResponse, TradeReceipt
from src.vt_trading.domain.repository import SpotPositionRepositoryProtocol
from src.vt_trading.domain.settlement import (
    apply_buy,
    apply_sell,
    VOLUME_ELIGIBILITY,
    is_eligible_for_volume_credit,
    limits,
    quote,
)
from src.vt_trading.infrastructure.persistence import SpotPositionRepository

logger = logging.getLogger(__name__)


class TradingService:
    def __init__(
        self,
        feed: MarketFeed,
        fee_rate: float,
        account_repo: AccountRepositoryProtocol | None = None,
        position_repo: SpotPositionRepositoryProtocol | None = None,
        achievements: AchievementService | None = None,
        volume_min_hold: timedelta = VOLUME_ELIGIBILITY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._feed = feed
        self._fee_rate = fee_rate
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._positions: SpotPositionRepositoryProtocol = position_repo or SpotPositionRepository()
        self._achievements = achievements or AchievementService(self._accounts)
        self._volume_min_hold = volume_min_hold
        self._clock = clock

    async def trade_info(self, db: AsyncSession, user_id: str, symbol: str) -> TradeInfoResponse:
        price_quote = await self._feed.get_quote(symbol)
        profile = await self._accounts.get_profile(db, user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        positions = await self._positions.list_for_user(db, user_id)
        holdings = next((p.amount for p in positions if p.symbol == price_quote.symbol), 0.0)
        lim = limits(profile.balance, price_quote.price, holdings, self._fee_rate)
        return TradeInfoResponse.build(
            price_quote.symbol, price_quote.price, profile.balance, holdings, lim, self._fee_rate
        )

    async def buy(
        self, db: AsyncSession, user_id: str, symbol: str, amount: float
    ) -> TradeReceipt:
        if amount <= 0:
            raise InvalidAmountError(amount)
        price_quote = await self._feed.get_quote(symbol)
        symbol, price = price_quote.symbol, price_quote.price
        q = quote(amount, price, self._fee_rate)

        async with atomic(db):
            balance = await self._accounts.adjust_balance(db, user_id, -q.total_cost)
            existing = await self._positions.get_for_update(db, user_id, symbol)
            position = apply_buy(existing, user_id, symbol, amount, price, self._clock())
            await self._positions.save(db, position)
            await self._accounts.append_ledger(
                db,
                user_id,
                LedgerEntryType.BUY_CRYPTO.value,
                -q.total_cost,
                balance,
                f"Kauf {coin_to_display(amount, symbol)} @ {price:.2f}",
                reference_id=symbol,
            )
            unlocked = await self._achievements.award(db, user_id, FIRST_TRADE)
            if unlocked is not None:
                balance += unlocked.reward

        logger.info("User %s bought %s %s @ %s", user_id, amount, symbol, price)
        return TradeReceipt.build(
            "buy", symbol, amount, price, q.subtotal, q.fee, q.total_cost, balance,
            position.amount, position.avg_buy_price,
            achievements=[unlocked.id] if unlocked else None,
        )

    async def sell(
        self, db: AsyncSession, user_id: str, symbol: str, amount: float
    ) -> TradeReceipt:
        if amount <= 0:
            raise InvalidAmountError(amount)
        price_quote = await self._feed.get_quote(symbol)
        symbol, price = price_quote.symbol, price_quote.price
        now = self._clock()

        async with atomic(db):
            position = await self._positions.get_for_update(db, user_id, symbol)
            if position is None:
                raise InsufficientHoldingsError(symbol, amount, 0.0)
            remaining = apply_sell(position, amount)
            sold = min(amount, position.amount)
            if remaining is None:
                await self._positions.delete(db, user_id, symbol)
            else:
                await self._positions.save(db, remaining)

            q = quote(sold, price, self._fee_rate)
            balance = await self._accounts.adjust_balance(db, user_id, q.payout)
            await self._accounts.append_ledger(
                db,
                user_id,
                LedgerEntryType.SELL_CRYPTO.value,
                q.payout,
                balance,
                f"Verkauf {coin_to_display(sold, symbol)} @ {price:.2f}",
                reference_id=symbol,
            )
            credited = 0.0
            if is_eligible_for_volume_credit(position.opened_at, now, self._volume_min_hold):
                credited = q.subtotal
                await self._accounts.add_trading_volume(db, user_id, credited)
            unlocked = await self._achievements.award(db, user_id, FIRST_TRADE)
            if unlocked is not None:
                balance += unlocked.reward

        logger.info(
            "User %s sold %s %s @ %s (volume credit %.2f)", user_id, sold, symbol, price, credited
        )
        return TradeReceipt.build(
            "sell", symbol, sold, price, q.subtotal, q.fee, q.payout, balance,
            remaining.amount if remaining else 0.0,
            position.avg_buy_price,
            volume_credited=credited,
            achievements=[unlocked.id] if unlocked else None,
        )
