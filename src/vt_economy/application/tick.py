"""EconomyTick — one pass of rent, maintenance and decay over every asset.

Each asset settles in its own session and transaction. A store error on one
asset is logged and counted and the pass moves on to the next asset.
Notifications go out after the asset's transaction committed.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.domain.repository import AccountRepositoryProtocol
from src.vt_account.infrastructure.persistence import AccountRepository
from src.vt_common.database import SessionFactory, atomic
from src.vt_common.datetime_utils import utc_now
from src.vt_common.enums import LedgerEntryType, NotificationKind
from src.vt_common.errors import AppError
from src.vt_economy.domain.properties import PROPERTY_CATALOG
from src.vt_economy.domain.repository import PropertyRepositoryProtocol
from src.vt_economy.domain.rules import TickOutcome, apply_tick
from src.vt_economy.infrastructure.persistence import PropertyRepository
from src.vt_notify.sink import NotificationSinkProtocol

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    processed: int = 0
    rent_collected: float = 0.0
    rent_payments: int = 0
    maintenance_events: int = 0
    failed: int = 0
    failed_ids: list[int] = field(default_factory=list)


class EconomyTick:
    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: NotificationSinkProtocol,
        rent_cycle_hours: float = 24.0,
        maintenance_chance: float = 0.08,
        decay_rate: float = 2.0,
        property_repo: PropertyRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._notifier = notifier
        self._rent_cycle = timedelta(hours=rent_cycle_hours)
        self._maintenance_chance = maintenance_chance
        self._decay_rate = decay_rate
        self._properties: PropertyRepositoryProtocol = property_repo or PropertyRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._rng = rng or random.Random()
        self._clock = clock

    async def run(self) -> TickReport:
        report = TickReport()
        async with self._session_factory() as db:
            asset_ids = await self._properties.list_ids(db)

        for asset_id in asset_ids:
            try:
                await self._settle(asset_id, report)
            except AppError:
                report.failed += 1
                report.failed_ids.append(asset_id)
                logger.exception("Economy tick failed for asset %s", asset_id)

        logger.info(
            "Economy tick: %d assets, %d rent payments (%.2f), %d maintenance events, %d failed",
            report.processed, report.rent_payments, report.rent_collected,
            report.maintenance_events, report.failed,
        )
        return report

    async def _settle(self, asset_id: int, report: TickReport) -> None:
        now = self._clock()
        async with self._session_factory() as db:
            async with atomic(db):
                asset = await self._properties.get_for_update(db, asset_id)
                if asset is None:
                    # Sold between listing and settling.
                    return
                ptype = PROPERTY_CATALOG.get(asset.asset_type)
                if ptype is None:
                    logger.error("Asset %s has unknown type %s", asset_id, asset.asset_type)
                    return
                outcome = apply_tick(
                    asset, ptype, now, self._rng,
                    self._rent_cycle, self._maintenance_chance, self._decay_rate,
                )
                await self._book(db, asset.user_id, ptype.name, asset_id, outcome)
                await self._properties.update_state(
                    db,
                    asset_id,
                    outcome.condition,
                    now if outcome.rent is not None else asset.last_rent_collected_at,
                )

        report.processed += 1
        if outcome.rent:
            report.rent_payments += 1
            report.rent_collected += outcome.rent
            await self._notifier.notify(
                asset.user_id,
                NotificationKind.RENT,
                {"property": ptype.name, "amount": outcome.rent, "condition": asset.condition},
            )
        if outcome.damage is not None:
            report.maintenance_events += 1
            await self._notifier.notify(
                asset.user_id,
                NotificationKind.MAINTENANCE,
                {
                    "property": ptype.name,
                    "damage": outcome.damage,
                    "cost": outcome.maintenance_cost,
                    "condition": outcome.condition,
                },
            )

    async def _book(
        self, db: AsyncSession, user_id: str, name: str, asset_id: int, outcome: TickOutcome
    ) -> None:
        ref = str(asset_id)
        if outcome.rent:
            balance = await self._accounts.adjust_balance(db, user_id, outcome.rent)
            await self._accounts.append_ledger(
                db, user_id, LedgerEntryType.RENT.value, outcome.rent, balance,
                f"Miete: {name}", reference_id=ref,
            )
        if outcome.damage is not None:
            cost = outcome.maintenance_cost
            balance = await self._accounts.adjust_balance(db, user_id, -cost, allow_negative=True)
            await self._accounts.append_ledger(
                db, user_id, LedgerEntryType.MAINTENANCE.value, -cost, balance,
                f"Wartung: {name} (-{outcome.damage}% Zustand)", reference_id=ref,
            )
