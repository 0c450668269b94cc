"""Bounded retry with pluggable backoff for network-bound coroutines.

Thin layer over tenacity so call sites only pick how many attempts, how long
to wait before attempt N+1, and which exceptions are worth retrying:

    quotes = await retry_async(
        source.fetch_once,
        attempts=2,
        delay=exponential_delay(base=1.0, cap=5.0),
        retry_on=(TransientFeedError,),
        what="price fetch",
    )
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DelayFn = Callable[[int], float]


def exponential_delay(base: float = 1.0, cap: float = 30.0) -> DelayFn:
    """Delay before retry n (1-based): base * 2**(n-1), capped."""

    def _delay(attempt: int) -> float:
        return min(cap, base * (2 ** (attempt - 1)))

    return _delay


def fixed_delay(seconds: float) -> DelayFn:
    return lambda _attempt: seconds


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    delay: DelayFn,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    what: str = "operation",
) -> T:
    """Await fn() up to `attempts` times. The last failure is re-raised as-is."""

    def _wait(state: RetryCallState) -> float:
        return delay(state.attempt_number)

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "%s failed (attempt %d/%d): %s", what, state.attempt_number, attempts, exc
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=_wait,
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await fn()
    raise AssertionError("unreachable: tenacity reraises on exhaustion")
