"""Unit tests for the per-candidate retry handler."""

import asyncio
import time
from unittest.mock import MagicMock

import pytest
from tenacity import wait_none

from llm_factory.exceptions import AttemptFailedError
from llm_factory.orchestrator import RetryHandler
from llm_factory.orchestrator.retry_handler import wait_retry_after
from llm_factory.providers import RateLimitError


def failed_state(error):
    state = MagicMock()
    state.outcome.failed = True
    state.outcome.exception.return_value = error
    return state


class Flaky:
    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"failure {self.calls}")
        return "ok"


class TestRetryHandler:
    """Test suite for retry handling."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = Flaky(failures=2)

        assert await RetryHandler(max_attempts=3).execute(func) == "ok"
        assert func.calls == 3

    @pytest.mark.asyncio
    async def test_reraises_last_error(self):
        func = Flaky(failures=5)

        with pytest.raises(ConnectionError, match="failure 2"):
            await RetryHandler(max_attempts=2).execute(func)
        assert func.calls == 2

    @pytest.mark.asyncio
    async def test_on_failure_sees_every_attempt(self):
        seen = []

        with pytest.raises(ConnectionError):
            await RetryHandler(max_attempts=3).execute(
                Flaky(failures=3), on_failure=lambda e, n: seen.append((str(e), n))
            )

        assert seen == [("failure 1", 1), ("failure 2", 2), ("failure 3", 3)]

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self):
        calls = []

        async def slow():
            calls.append(1)
            await asyncio.sleep(1)

        task = asyncio.create_task(RetryHandler(max_attempts=3).execute(slow))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls == [1]

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            RetryHandler(max_attempts=0)

    def test_backoff_is_capped(self):
        handler = RetryHandler(max_attempts=3, min_wait=0.5, max_wait=2.0)
        wait = handler._wait_strategy()
        assert wait.min == 0.5
        assert wait.max == 2.0


class TestRetryAfterWait:
    """Test suite for honoring vendor retry-after hints."""

    def test_uses_retry_after_of_wrapped_error(self):
        error = AttemptFailedError("A", RateLimitError("slow down", retry_after=1.5))

        assert wait_retry_after(wait_none(), max_wait=10.0)(failed_state(error)) == 1.5

    def test_retry_after_is_capped(self):
        error = RateLimitError("slow down", retry_after=60)

        assert wait_retry_after(wait_none(), max_wait=2.0)(failed_state(error)) == 2.0

    def test_other_errors_use_backoff(self):
        assert wait_retry_after(wait_none(), max_wait=2.0)(failed_state(ConnectionError())) == 0

    @pytest.mark.asyncio
    async def test_rate_limited_attempt_waits_before_retry(self):
        calls = []

        async def rate_limited_once():
            calls.append(time.perf_counter())
            if len(calls) == 1:
                raise RateLimitError("slow down", retry_after=0.05)
            return "ok"

        assert await RetryHandler(max_attempts=2).execute(rate_limited_once) == "ok"
        assert calls[1] - calls[0] >= 0.04
