"""
Per-source call spacing and bounded retries.

``RateLimiter`` enforces a minimum gap between calls to the same source
(a leaky bucket of one). ``RetryPolicy`` bounds how often a failing call is
repeated. ``SourceInvoker`` combines both around a source client coroutine::

    invoker = SourceInvoker(RateLimiter(cooldown=2.0), {"perenual": RetryPolicy(1)})
    raw = await invoker.invoke("perenual", lambda: client.fetch_by_id("42"))

All state is per instance so independent aggregators never share timestamps.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from flora_catalog.errors import FetchError, RequestFailed, Unreachable

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]

DEFAULT_COOLDOWN: float = 2.0  # seconds between calls to one source


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a fixed delay.

    ``max_attempts`` counts the first call, so ``RetryPolicy(2)`` means one
    retry at most. Only ``RequestFailed`` and ``Unreachable`` are retried.
    """

    max_attempts: int = 2
    delay_seconds: float = 0.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)

    @staticmethod
    def is_retryable(error: FetchError) -> bool:
        return isinstance(error, (RequestFailed, Unreachable))


class RateLimiter:
    """Minimum spacing between calls per source id."""

    def __init__(
        self,
        cooldown: float = DEFAULT_COOLDOWN,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.cooldown = cooldown
        self._clock = clock
        self._sleep = sleep
        self._last_call: dict[str, float] = {}

    def last_call(self, source_id: str) -> float | None:
        return self._last_call.get(source_id)

    async def acquire(self, source_id: str) -> None:
        """Suspend until ``source_id`` is outside its cooldown window.

        The slot is reserved before sleeping, so concurrent callers for the
        same source queue up one cooldown apart.
        """
        now = self._clock()
        last = self._last_call.get(source_id)
        start = now if last is None else max(now, last + self.cooldown)
        self._last_call[source_id] = start
        wait = start - now
        if wait > 0:
            logger.debug("Rate limiting %s: waiting %.2fs", source_id, wait)
            await self._sleep(wait)


class SourceInvoker:
    """Wrap source calls with rate limiting and the source's retry policy."""

    def __init__(
        self,
        limiter: RateLimiter | None = None,
        policies: Mapping[str, RetryPolicy] | None = None,
        *,
        default_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.limiter = limiter or RateLimiter()
        self.policies = dict(policies or {})
        self.default_policy = default_policy or RetryPolicy()
        self._sleep = sleep

    def policy_for(self, source_id: str) -> RetryPolicy:
        return self.policies.get(source_id, self.default_policy)

    async def invoke(self, source_id: str, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Call ``fn`` under the source's cooldown and retry policy.

        Raises:
            RateLimited: Immediately, without retrying.
            MalformedResponse: Immediately, retrying would not help.
            FetchError: The last error once attempts are exhausted.
        """
        policy = self.policy_for(source_id)
        for attempt in range(1, policy.max_attempts + 1):
            await self.limiter.acquire(source_id)
            try:
                return await fn()
            except FetchError as e:
                if not policy.is_retryable(e) or attempt == policy.max_attempts:
                    raise
                logger.debug(
                    "%s attempt %d/%d failed (%s), retrying in %.2fs",
                    source_id,
                    attempt,
                    policy.max_attempts,
                    e,
                    policy.delay_seconds,
                )
                await self._sleep(policy.delay_seconds)
        raise AssertionError("unreachable")  # pragma: no cover
