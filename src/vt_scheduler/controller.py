"""SchedulerController — owns the periodic jobs of the economy engine.

    market_refresh   MarketFeed.refresh, one short retry after a failure
    risk_scan        LeverageService.run_risk_scan
    economy_tick     EconomyTick.run
    world_event      WorldEventService.trigger
    health_probe     out-of-band refresh when the feed went stale

All state lives on the instance, so tests can run several controllers side
by side.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.vt_common.datetime_utils import utc_now
from src.vt_common.errors import SchedulerNotRunningError
from src.vt_economy.application.tick import EconomyTick
from src.vt_events.application.service import WorldEventService
from src.vt_leverage.application.service import LeverageService
from src.vt_market.application.feed import MarketFeed
from src.vt_market.domain.models import FeedStatus, QuoteSet
from src.vt_scheduler.ticker import RepeatingTask, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerIntervals:
    market_refresh: float = 60.0
    market_retry: float = 10.0
    risk_scan: float = 300.0
    economy_tick: float = 3600.0
    world_event: float = 1800.0
    health_probe: float = 180.0


@dataclass(frozen=True)
class SchedulerStatus:
    running: bool
    started_at: datetime | None
    tasks: list[TaskStatus]
    feed: FeedStatus


class SchedulerController:
    def __init__(
        self,
        feed: MarketFeed,
        leverage: LeverageService,
        economy: EconomyTick,
        events: WorldEventService,
        intervals: SchedulerIntervals | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._feed = feed
        self._leverage = leverage
        self._economy = economy
        self._events = events
        self._intervals = intervals or SchedulerIntervals()
        self._clock = clock
        self._running = False
        self._started_at: datetime | None = None
        self._tasks: dict[str, RepeatingTask] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    def _build_tasks(self) -> dict[str, RepeatingTask]:
        iv = self._intervals
        tasks = (
            RepeatingTask(
                "market_refresh", self._refresh_market, iv.market_refresh,
                retry_interval=iv.market_retry,
            ),
            RepeatingTask("risk_scan", self._leverage.run_risk_scan, iv.risk_scan,
                          initial_delay=iv.risk_scan),
            RepeatingTask("economy_tick", self._economy.run, iv.economy_tick,
                          initial_delay=iv.economy_tick),
            RepeatingTask("world_event", self._events.trigger, iv.world_event,
                          initial_delay=iv.world_event),
            RepeatingTask("health_probe", self._health_probe, iv.health_probe,
                          initial_delay=iv.health_probe),
        )
        return {t.name: t for t in tasks}

    def start(self) -> bool:
        """Start every job. Returns False if the scheduler is already running."""
        if self._running:
            logger.warning("Scheduler already running, start ignored")
            return False
        self._running = True
        self._started_at = self._clock()
        self._tasks = self._build_tasks()
        for task in self._tasks.values():
            task.start()
        logger.info("Scheduler started with %d tasks", len(self._tasks))
        return True

    async def stop(self) -> None:
        """Signal every job first, then wait for all of them together."""
        if not self._running:
            return
        self._running = False
        for task in self._tasks.values():
            task.request_stop()
        await asyncio.gather(*(task.stop() for task in self._tasks.values()))
        logger.info("Scheduler stopped")

    async def force_refresh(self) -> QuoteSet | None:
        """Immediate out-of-band market refresh; raises FeedError on failure."""
        if not self._running:
            raise SchedulerNotRunningError()
        logger.info("Forced market refresh requested")
        return await self._refresh_market()

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self._running,
            started_at=self._started_at,
            tasks=[t.status() for t in self._tasks.values()],
            feed=self._feed.status(),
        )

    async def _refresh_market(self) -> QuoteSet | None:
        return await self._feed.refresh(is_cancelled=lambda: not self._running)

    async def _health_probe(self) -> None:
        if not self._feed.needs_refresh():
            return
        logger.warning(
            "Market data older than %.0fs, forcing refresh", self._feed.staleness_ceiling
        )
        await self._refresh_market()
