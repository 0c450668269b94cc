"""RepeatingTask — a cancellable ticker that reschedules only after a run ends.

    sleep(initial_delay) -> run -> sleep(interval or retry_interval) -> run -> ...

Runs of one task never overlap. A failed run is logged and counted; with a
retry_interval the next run comes after that shorter delay once, then the
normal cadence resumes whatever the retry's outcome.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

from src.vt_common.datetime_utils import utc_now
from src.vt_common.enums import TaskState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskStatus:
    name: str
    state: TaskState
    interval: float
    runs: int
    failures: int
    last_started_at: datetime | None
    last_finished_at: datetime | None
    last_error: str | None


class RepeatingTask:
    def __init__(
        self,
        name: str,
        body: Callable[[], Awaitable[object]],
        interval: float,
        retry_interval: float | None = None,
        initial_delay: float = 0.0,
        join_timeout: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.name = name
        self._body = body
        self._interval = interval
        self._retry_interval = retry_interval
        self._initial_delay = initial_delay
        self._join_timeout = join_timeout
        self._clock = clock

        self._task: asyncio.Task | None = None
        self._stopped = True
        self._in_flight = False
        self._state = TaskState.IDLE
        self._runs = 0
        self._failures = 0
        self._last_started_at: datetime | None = None
        self._last_finished_at: datetime | None = None
        self._last_error: str | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Spawn the loop. False if it is already running."""
        if self.is_running:
            return False
        self._stopped = False
        self._state = TaskState.IDLE
        self._task = asyncio.create_task(self._loop(), name=f"vt.{self.name}")
        return True

    def request_stop(self) -> None:
        """Mark the task stopped and cancel a pending sleep, without waiting."""
        self._stopped = True
        if self._task is not None and not self._in_flight:
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel a pending sleep at once; let an in-flight run finish (bounded)."""
        self.request_stop()
        task, self._task = self._task, None
        if task is None:
            self._state = TaskState.STOPPED
            return
        done, _ = await asyncio.wait({task}, timeout=self._join_timeout)
        if not done:
            logger.warning(
                "Task %s did not finish within %.0fs, cancelling", self.name, self._join_timeout
            )
            task.cancel()
            await asyncio.wait({task})
        self._state = TaskState.STOPPED

    async def run_once(self) -> bool:
        """Invoke the body once. Returns True on success; errors never escape."""
        self._state = TaskState.RUNNING
        self._in_flight = True
        self._runs += 1
        self._last_started_at = self._clock()
        try:
            await self._body()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._failures += 1
            self._last_error = f"{type(exc).__name__}: {exc}"
            self._state = TaskState.FAILED
            logger.exception("Task %s failed", self.name)
            return False
        finally:
            self._in_flight = False
            self._last_finished_at = self._clock()
        self._last_error = None
        self._state = TaskState.SUCCEEDED
        return True

    async def _loop(self) -> None:
        delay = self._initial_delay
        retried = False
        try:
            while not self._stopped:
                await asyncio.sleep(delay)
                if self._stopped:
                    break
                ok = await self.run_once()
                if ok or self._retry_interval is None or retried:
                    delay, retried = self._interval, False
                else:
                    logger.info("Task %s retrying in %.0fs", self.name, self._retry_interval)
                    delay, retried = self._retry_interval, True
        except asyncio.CancelledError:
            logger.info("Task %s cancelled", self.name)
            raise

    def status(self) -> TaskStatus:
        return TaskStatus(
            name=self.name,
            state=self._state,
            interval=self._interval,
            runs=self._runs,
            failures=self._failures,
            last_started_at=self._last_started_at,
            last_finished_at=self._last_finished_at,
            last_error=self._last_error,
        )
