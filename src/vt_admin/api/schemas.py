"""Pydantic schemas for the admin control surface."""

from datetime import datetime

from pydantic import BaseModel

from src.vt_market.application.schemas import FeedStatusResponse
from src.vt_scheduler.controller import SchedulerStatus
from src.vt_scheduler.ticker import TaskStatus


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class TaskStatusItem(BaseModel):
    name: str
    state: str
    interval_seconds: float
    runs: int
    failures: int
    last_started_at: str | None
    last_finished_at: str | None
    last_error: str | None

    @classmethod
    def from_status(cls, status: TaskStatus) -> "TaskStatusItem":
        return cls(
            name=status.name,
            state=status.state.value,
            interval_seconds=status.interval,
            runs=status.runs,
            failures=status.failures,
            last_started_at=_iso(status.last_started_at),
            last_finished_at=_iso(status.last_finished_at),
            last_error=status.last_error,
        )


class SchedulerStatusResponse(BaseModel):
    running: bool
    started_at: str | None
    tasks: list[TaskStatusItem]
    feed: FeedStatusResponse

    @classmethod
    def from_status(cls, status: SchedulerStatus) -> "SchedulerStatusResponse":
        return cls(
            running=status.running,
            started_at=_iso(status.started_at),
            tasks=[TaskStatusItem.from_status(t) for t in status.tasks],
            feed=FeedStatusResponse.from_status(status.feed),
        )
