"""PropertyService — owner actions on the property market: buy, sell, repair.

Buying is locked until the owner's trading volume reaches the unlock level.
Each owner holds at most one asset per property type.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.application.achievements import (
    PORTFOLIO_KING,
    PROPERTY_MOGUL,
    PROPERTY_MOGUL_COUNT,
    AchievementService,
)
from src.vt_account.domain.repository import AccountRepositoryProtocol
from src.vt_account.infrastructure.persistence import AccountRepository
from src.vt_common.database import atomic
from src.vt_common.enums import LedgerEntryType
from src.vt_common.errors import (
    PropertyAlreadyOwnedError,
    PropertyMarketLockedError,
    PropertyNotFoundError,
    ProfileNotFoundError,
)
from src.vt_common.money import eur_to_display
from src.vt_economy.application.schemas import PropertyItem, PropertyReceipt
from src.vt_economy.domain.properties import PROPERTY_CATALOG, property_type
from src.vt_economy.domain.repository import PropertyRepositoryProtocol
from src.vt_economy.domain.rules import MAX_CONDITION
from src.vt_economy.infrastructure.persistence import PropertyRepository

logger = logging.getLogger(__name__)


class PropertyService:
    def __init__(
        self,
        min_volume: float = 30000.0,
        resale_factor: float = 0.8,
        repair_multiplier: float = 3.0,
        property_repo: PropertyRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        achievements: AchievementService | None = None,
    ) -> None:
        self._min_volume = min_volume
        self._resale_factor = resale_factor
        self._repair_multiplier = repair_multiplier
        self._properties: PropertyRepositoryProtocol = property_repo or PropertyRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._achievements = achievements or AchievementService(self._accounts)

    async def portfolio(self, db: AsyncSession, user_id: str) -> list[PropertyItem]:
        assets = await self._properties.list_for_user(db, user_id)
        return [
            PropertyItem.from_asset(a, PROPERTY_CATALOG[a.asset_type], self._repair_multiplier)
            for a in assets
            if a.asset_type in PROPERTY_CATALOG
        ]

    async def buy(self, db: AsyncSession, user_id: str, type_id: str) -> PropertyReceipt:
        ptype = property_type(type_id)
        async with atomic(db):
            profile = await self._accounts.get_profile(db, user_id)
            if profile is None:
                raise ProfileNotFoundError(user_id)
            if profile.trading_volume < self._min_volume:
                raise PropertyMarketLockedError(profile.trading_volume, self._min_volume)

            asset = await self._properties.insert(db, user_id, ptype.id, ptype.price)
            if asset is None:
                raise PropertyAlreadyOwnedError(ptype.id)
            balance = await self._accounts.adjust_balance(db, user_id, -ptype.price)
            await self._accounts.append_ledger(
                db, user_id, LedgerEntryType.BUY_PROPERTY.value, -ptype.price, balance,
                f"Kauf: {ptype.name}", reference_id=str(asset.id),
            )

            owned = {a.asset_type for a in await self._properties.list_for_user(db, user_id)}
            unlocked = []
            if len(owned) >= PROPERTY_MOGUL_COUNT:
                unlocked.append(await self._achievements.award(db, user_id, PROPERTY_MOGUL))
            if owned >= set(PROPERTY_CATALOG):
                unlocked.append(await self._achievements.award(db, user_id, PORTFOLIO_KING))
            awarded = [a for a in unlocked if a is not None]
            balance += sum(a.reward for a in awarded)

        logger.info("User %s bought %s for %.2f", user_id, ptype.id, ptype.price)
        return PropertyReceipt(
            action="buy",
            asset_id=asset.id,
            asset_type=ptype.id,
            name=ptype.name,
            amount=-ptype.price,
            amount_display=eur_to_display(-ptype.price),
            condition=asset.condition,
            balance_after=balance,
            achievements=[a.id for a in awarded],
        )

    async def sell(self, db: AsyncSession, user_id: str, asset_id: int) -> PropertyReceipt:
        async with atomic(db):
            asset = await self._properties.delete(db, user_id, asset_id)
            if asset is None:
                raise PropertyNotFoundError(str(asset_id))
            ptype = property_type(asset.asset_type)
            proceeds = asset.purchase_price * self._resale_factor
            balance = await self._accounts.adjust_balance(db, user_id, proceeds)
            await self._accounts.append_ledger(
                db, user_id, LedgerEntryType.SELL_PROPERTY.value, proceeds, balance,
                f"Verkauf: {ptype.name}", reference_id=str(asset.id),
            )

        logger.info("User %s sold %s for %.2f", user_id, asset.asset_type, proceeds)
        return PropertyReceipt(
            action="sell",
            asset_id=asset.id,
            asset_type=asset.asset_type,
            name=ptype.name,
            amount=proceeds,
            amount_display=eur_to_display(proceeds),
            condition=asset.condition,
            balance_after=balance,
        )

    async def repair(self, db: AsyncSession, user_id: str, asset_id: int) -> PropertyReceipt:
        async with atomic(db):
            asset = await self._properties.get_for_update(db, asset_id)
            if asset is None or asset.user_id != user_id:
                raise PropertyNotFoundError(str(asset_id))
            ptype = property_type(asset.asset_type)
            cost = ptype.maintenance_cost * self._repair_multiplier
            balance = await self._accounts.adjust_balance(db, user_id, -cost)
            await self._properties.update_state(
                db, asset.id, MAX_CONDITION, asset.last_rent_collected_at
            )
            await self._accounts.append_ledger(
                db, user_id, LedgerEntryType.PROPERTY_REPAIR.value, -cost, balance,
                f"Reparatur: {ptype.name}", reference_id=str(asset.id),
            )

        logger.info("User %s repaired %s for %.2f", user_id, asset.asset_type, cost)
        return PropertyReceipt(
            action="repair",
            asset_id=asset.id,
            asset_type=asset.asset_type,
            name=ptype.name,
            amount=-cost,
            amount_display=eur_to_display(-cost),
            condition=MAX_CONDITION,
            balance_after=balance,
        )
