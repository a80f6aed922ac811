"""Per-candidate retry handler."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)
from tenacity.wait import wait_base

T = TypeVar("T")


def _retry_after(error: BaseException | None) -> float | None:
    # Attempt errors wrap the vendor error as ``cause``
    while error is not None:
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            return retry_after
        error = getattr(error, "cause", None)
    return None


class wait_retry_after(wait_base):
    """Wait at least as long as a rate-limited vendor asked, up to ``max_wait``."""

    def __init__(self, fallback: wait_base, max_wait: float):
        self.fallback = fallback
        self.max_wait = max_wait

    def __call__(self, retry_state: RetryCallState) -> float:
        wait = self.fallback(retry_state)
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return wait
        retry_after = _retry_after(outcome.exception())
        if retry_after is None:
            return wait
        return max(wait, min(retry_after, self.max_wait))


class RetryHandler:
    """Runs an attempt up to ``max_attempts`` times with optional backoff."""

    def __init__(
        self,
        max_attempts: int = 3,
        min_wait: float = 0.0,
        max_wait: float = 10.0,
        multiplier: float = 2.0,
    ):
        """Initialize retry handler. A ``min_wait`` of 0 retries immediately
        unless the failed attempt carries a ``retry_after`` hint."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.multiplier = multiplier

    def _wait_strategy(self):
        if self.min_wait <= 0:
            return wait_none()
        return wait_exponential(
            multiplier=self.multiplier,
            min=self.min_wait,
            max=max(self.min_wait, self.max_wait),
        )

    async def execute(
        self,
        func: Callable[[], Awaitable[T]],
        on_failure: Callable[[Exception, int], None] | None = None,
    ) -> T:
        """Execute the attempt, re-raising the last error once attempts run out.

        ``on_failure`` is called with the error and the 1-based attempt number
        for every failed attempt, including the last one.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_retry_after(self._wait_strategy(), self.max_wait),
            reraise=True,
        ):
            with attempt:
                try:
                    return await func()
                except Exception as e:
                    if on_failure:
                        on_failure(e, attempt.retry_state.attempt_number)
                    raise
