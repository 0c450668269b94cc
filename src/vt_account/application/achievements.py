"""Achievement catalog and award logic.

Awards run inside the caller's unit of work: unlocking, crediting the reward
and writing the ledger entry commit together with the trade that earned it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.vt_account.domain.models import Achievement
from src.vt_account.domain.repository import AccountRepositoryProtocol
from src.vt_account.infrastructure.persistence import AccountRepository
from src.vt_common.enums import LedgerEntryType

logger = logging.getLogger(__name__)

FIRST_TRADE = "first_trade"
PROPERTY_MOGUL = "property_mogul"
HIGH_ROLLER = "high_roller"
PORTFOLIO_KING = "portfolio_king"

ACHIEVEMENTS: dict[str, Achievement] = {
    a.id: a
    for a in (
        Achievement(FIRST_TRADE, "Erster Trade", "Deinen ersten Trade abgeschlossen", 100.0),
        Achievement(PROPERTY_MOGUL, "Immobilien-Mogul", "5 Immobilien besitzen", 5000.0),
        Achievement(HIGH_ROLLER, "High Roller", "Einen 50x Hebel-Trade eröffnet", 2000.0),
        Achievement(PORTFOLIO_KING, "Portfolio-König", "Jeden Immobilientyp besitzen", 25000.0),
    )
}

PROPERTY_MOGUL_COUNT = 5
HIGH_ROLLER_LEVERAGE = 50


class AchievementService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def award(
        self, db: AsyncSession, user_id: str, achievement_id: str
    ) -> Achievement | None:
        """Unlock and pay out once. Returns the achievement only on first unlock."""
        achievement = ACHIEVEMENTS[achievement_id]
        if not await self._repo.unlock_achievement(db, user_id, achievement_id):
            return None
        balance = await self._repo.adjust_balance(db, user_id, achievement.reward)
        await self._repo.append_ledger(
            db,
            user_id,
            LedgerEntryType.ACHIEVEMENT.value,
            achievement.reward,
            balance,
            f"Achievement: {achievement.title}",
            reference_id=achievement.id,
        )
        logger.info("User %s unlocked achievement %s", user_id, achievement_id)
        return achievement
