"""Tests for the adaptive rate limiter."""

import time

import pytest

from tgdl.api.rate_limiter import AdaptiveRateLimiter


class TestAdaptiveRateLimiter:
    @pytest.mark.asyncio
    async def test_on_429_halves_rate(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=20.0)
        await limiter.on_429(retry_after=0)
        assert limiter.rate == 10.0

    @pytest.mark.asyncio
    async def test_rate_never_drops_below_one(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=1.5)
        await limiter.on_429(retry_after=0)
        await limiter.on_429(retry_after=0)
        assert limiter.rate == 1.0

    @pytest.mark.asyncio
    async def test_acquire_honours_retry_after(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=1000.0)
        await limiter.on_429(retry_after=0.2)

        started = time.monotonic()
        await limiter.acquire()
        assert time.monotonic() - started >= 0.15

    @pytest.mark.asyncio
    async def test_acquire_spaces_calls(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=10.0, max_calls_per_second=10.0)

        started = time.monotonic()
        for _ in range(3):
            await limiter.acquire()
        # First call is immediate, the next two wait ~0.1s each
        assert time.monotonic() - started >= 0.18
