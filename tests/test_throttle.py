"""Tests for per-source cooldown and bounded retries."""

from __future__ import annotations

import pytest

from flora_catalog.errors import (
    FetchError,
    MalformedResponse,
    RateLimited,
    RequestFailed,
    Unreachable,
)
from flora_catalog.services.throttle import RateLimiter, RetryPolicy, SourceInvoker

from conftest import SleepRecorder


class FakeMonotonic:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class Flaky:
    """Coroutine factory that fails with the given errors, then succeeds."""

    def __init__(self, *errors: FetchError, result: object = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 2
        assert policy.delay_seconds == 0.5

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (RequestFailed("x", 500), True),
            (RequestFailed("x", 404), True),
            (Unreachable("x", "down"), True),
            (RateLimited("x"), False),
            (MalformedResponse("x", "bad"), False),
        ],
    )
    def test_is_retryable(self, error: FetchError, expected: bool) -> None:
        assert RetryPolicy.is_retryable(error) is expected


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self) -> None:
        sleep = SleepRecorder()
        limiter = RateLimiter(2.0, clock=FakeMonotonic(), sleep=sleep)

        await limiter.acquire("perenual")

        assert sleep.calls == []
        assert limiter.last_call("perenual") == 100.0

    @pytest.mark.asyncio
    async def test_second_call_waits_remaining_cooldown(self) -> None:
        clock = FakeMonotonic()
        sleep = SleepRecorder()
        limiter = RateLimiter(2.0, clock=clock, sleep=sleep)

        await limiter.acquire("perenual")
        clock.now = 100.5
        await limiter.acquire("perenual")

        assert sleep.calls == [pytest.approx(1.5)]
        assert limiter.last_call("perenual") == pytest.approx(102.0)

    @pytest.mark.asyncio
    async def test_no_wait_after_cooldown_elapsed(self) -> None:
        clock = FakeMonotonic()
        sleep = SleepRecorder()
        limiter = RateLimiter(2.0, clock=clock, sleep=sleep)

        await limiter.acquire("perenual")
        clock.now = 103.0
        await limiter.acquire("perenual")

        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_sources_are_independent(self) -> None:
        sleep = SleepRecorder()
        limiter = RateLimiter(2.0, clock=FakeMonotonic(), sleep=sleep)

        await limiter.acquire("perenual")
        await limiter.acquire("inaturalist")

        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_queue_one_cooldown_apart(self) -> None:
        sleep = SleepRecorder()
        limiter = RateLimiter(2.0, clock=FakeMonotonic(), sleep=sleep)

        for _ in range(3):
            await limiter.acquire("perenual")

        assert sleep.calls == [pytest.approx(2.0), pytest.approx(4.0)]

    def test_limiters_do_not_share_state(self) -> None:
        a = RateLimiter()
        b = RateLimiter()
        a._last_call["perenual"] = 1.0
        assert b.last_call("perenual") is None


class TestSourceInvoker:
    @pytest.mark.asyncio
    async def test_success_first_try(self, invoker: SourceInvoker) -> None:
        fn = Flaky()
        assert await invoker.invoke("inaturalist", fn) == "ok"
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_retries_request_failed_once(
        self, invoker: SourceInvoker, sleep: SleepRecorder
    ) -> None:
        fn = Flaky(RequestFailed("inaturalist", 503))

        assert await invoker.invoke("inaturalist", fn) == "ok"
        assert fn.calls == 2
        assert 0.5 in sleep.calls

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, invoker: SourceInvoker) -> None:
        fn = Flaky(Unreachable("x", "a"), Unreachable("x", "b"), Unreachable("x", "c"))

        with pytest.raises(Unreachable, match="b"):
            await invoker.invoke("inaturalist", fn)
        assert fn.calls == 2

    @pytest.mark.asyncio
    async def test_rate_limited_not_retried(self, invoker: SourceInvoker) -> None:
        fn = Flaky(RateLimited("perenual"))

        with pytest.raises(RateLimited):
            await invoker.invoke("perenual", fn)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_malformed_not_retried(self, invoker: SourceInvoker) -> None:
        fn = Flaky(MalformedResponse("perenual", "bad"))

        with pytest.raises(MalformedResponse):
            await invoker.invoke("perenual", fn)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_per_source_policy(self, sleep: SleepRecorder) -> None:
        invoker = SourceInvoker(
            RateLimiter(0, sleep=sleep),
            {"perenual": RetryPolicy(max_attempts=1)},
            sleep=sleep,
        )
        fn = Flaky(RequestFailed("perenual", 500))

        with pytest.raises(RequestFailed):
            await invoker.invoke("perenual", fn)
        assert fn.calls == 1
        assert invoker.policy_for("inaturalist") == RetryPolicy()

    @pytest.mark.asyncio
    async def test_every_attempt_is_rate_limited(self, sleep: SleepRecorder) -> None:
        limiter = RateLimiter(2.0, clock=FakeMonotonic(), sleep=sleep)
        invoker = SourceInvoker(limiter, default_policy=RetryPolicy(2, 0.5), sleep=sleep)
        fn = Flaky(RequestFailed("inaturalist", 500))

        await invoker.invoke("inaturalist", fn)

        # retry delay, then the cooldown wait before the second attempt
        assert sleep.calls == [0.5, pytest.approx(2.0)]
