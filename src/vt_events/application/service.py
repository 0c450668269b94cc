"""WorldEventService — the low-probability market news broadcast."""

import logging
import random

from src.vt_common.enums import NotificationKind
from src.vt_events.domain.catalog import MARKET_EVENTS, MarketEvent
from src.vt_notify.sink import NotificationSinkProtocol

logger = logging.getLogger(__name__)


class WorldEventService:
    def __init__(
        self,
        notifier: NotificationSinkProtocol,
        chance: float = 0.12,
        events: tuple[MarketEvent, ...] = MARKET_EVENTS,
        rng: random.Random | None = None,
    ) -> None:
        self._notifier = notifier
        self._chance = chance
        self._events = events
        self._rng = rng or random.Random()

    async def trigger(self) -> MarketEvent | None:
        """Roll once; broadcast and return the event if one fires."""
        if not self._events or self._rng.random() >= self._chance:
            return None
        event = self._rng.choice(self._events)
        logger.info("World event fired: %s", event.id)
        await self._notifier.broadcast(
            NotificationKind.MARKET_NEWS,
            {
                "event": event.id,
                "message": event.message,
                "effect_pct": round(event.effect_pct, 2),
            },
        )
        return event
