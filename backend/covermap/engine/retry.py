"""Retry policy with linearly increasing backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """``retries`` extra attempts after the first; delay before attempt n+1 is base * (n + 1)."""

    retries: int = 0
    base_delay_s: float = 0.0

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.base_delay_s < 0:
            raise ValueError(f"base_delay_s must be >= 0, got {self.base_delay_s}")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay_s * (attempt + 1)

    @property
    def attempts(self) -> int:
        return self.retries + 1


NO_RETRY = RetryPolicy()


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``fn()`` until it succeeds or the policy is exhausted; the last error propagates."""
    for attempt in range(policy.attempts):
        try:
            return await fn()
        except retry_on as e:
            if attempt >= policy.retries:
                raise
            delay = policy.delay_for(attempt)
            logger.debug("Attempt %d failed (%s), retrying in %.1fs", attempt + 1, e, delay)
            await sleep(delay)
    raise AssertionError("unreachable")
