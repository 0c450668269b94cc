"""Best-effort user notifications over Redis pub/sub.

The chat front-end subscribes to `<prefix>:<user_id>` and `<prefix>:broadcast`
and renders the JSON messages. Delivery is at-most-once: a publish that still
fails after its retries is logged and dropped, never raised into the task that
produced it.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.vt_common.datetime_utils import utc_now
from src.vt_common.enums import NotificationKind
from src.vt_common.retry import fixed_delay, retry_async

logger = logging.getLogger(__name__)


class NotificationSinkProtocol(Protocol):
    async def notify(
        self, user_id: str, kind: NotificationKind, payload: dict[str, Any]
    ) -> None: ...

    async def broadcast(self, kind: NotificationKind, payload: dict[str, Any]) -> None: ...


class RedisNotificationSink:
    def __init__(
        self,
        redis_provider: Callable[[], Awaitable[aioredis.Redis]],
        channel_prefix: str = "vt:notify",
        attempts: int = 2,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._redis_provider = redis_provider
        self._prefix = channel_prefix
        self._attempts = attempts
        self._clock = clock

    async def notify(
        self, user_id: str, kind: NotificationKind, payload: dict[str, Any]
    ) -> None:
        await self._publish(f"{self._prefix}:{user_id}", kind, payload, user_id)

    async def broadcast(self, kind: NotificationKind, payload: dict[str, Any]) -> None:
        await self._publish(f"{self._prefix}:broadcast", kind, payload, None)

    async def _publish(
        self,
        channel: str,
        kind: NotificationKind,
        payload: dict[str, Any],
        user_id: str | None,
    ) -> None:
        message = json.dumps(
            {
                "kind": kind.value,
                "user_id": user_id,
                "payload": payload,
                "sent_at": self._clock().isoformat(),
            },
            default=str,
        )

        async def _send() -> int:
            client = await self._redis_provider()
            return await client.publish(channel, message)

        try:
            await retry_async(
                _send,
                attempts=self._attempts,
                delay=fixed_delay(0.5),
                retry_on=(RedisError, OSError),
                what=f"notify {channel}",
            )
        except (RedisError, OSError) as exc:
            logger.warning("Dropped %s notification on %s: %s", kind.value, channel, exc)
