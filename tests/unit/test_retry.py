"""Unit tests for retry_async and the delay helpers."""

import pytest

from src.vt_common.retry import exponential_delay, fixed_delay, retry_async


class Flaky:
    def __init__(self, failures: int, exc: type[Exception] = ConnectionError) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


class TestDelays:
    def test_exponential_doubles_up_to_cap(self) -> None:
        delay = exponential_delay(base=1.0, cap=5.0)
        assert [delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]

    def test_fixed(self) -> None:
        assert fixed_delay(0.5)(7) == 0.5


class TestRetryAsync:
    async def test_returns_first_success(self) -> None:
        fn = Flaky(failures=0)
        assert await retry_async(fn, attempts=3, delay=fixed_delay(0)) == "ok"
        assert fn.calls == 1

    async def test_retries_until_success(self) -> None:
        fn = Flaky(failures=2)
        result = await retry_async(
            fn, attempts=3, delay=fixed_delay(0), retry_on=(ConnectionError,)
        )
        assert result == "ok"
        assert fn.calls == 3

    async def test_reraises_last_error(self) -> None:
        fn = Flaky(failures=5)
        with pytest.raises(ConnectionError, match="failure 2"):
            await retry_async(fn, attempts=2, delay=fixed_delay(0), retry_on=(ConnectionError,))
        assert fn.calls == 2

    async def test_does_not_retry_other_errors(self) -> None:
        fn = Flaky(failures=1, exc=ValueError)
        with pytest.raises(ValueError):
            await retry_async(fn, attempts=3, delay=fixed_delay(0), retry_on=(ConnectionError,))
        assert fn.calls == 1
