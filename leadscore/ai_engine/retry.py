"""
leadscore/ai_engine/retry.py — Timeout + exponential-backoff retry policy for remote calls.

Every attempt is raced against a timeout; any exception (including the
timeout) is retried after base_delay * 2^(attempt-1) seconds until
max_attempts is reached, then tenacity.RetryError is raised.

The sleep function is injectable so tests can run on a fake clock.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    base_delay_s: float = 1.0
    timeout_s: float = 30.0
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows a failed ``attempt`` (1-based)."""
        return self.base_delay_s * 2 ** (attempt - 1)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay_s, exp_base=2, min=0),
            retry=retry_if_exception_type(Exception),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self.sleep,
        )

    async def _attempt(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await asyncio.wait_for(fn(*args), timeout=self.timeout_s)

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        """
        Call ``await fn(*args)`` under this policy.

        Raises:
            tenacity.RetryError: every attempt failed; the last exception is
                available via ``err.last_attempt.exception()``.
        """
        return await self._retrying()(self._attempt, fn, *args)
