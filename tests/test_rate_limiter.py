"""Tests for token-bucket rate limiting."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from rarefind.marketplaces.rate_limiter import (
    DEFAULT_BUCKETS,
    BucketConfig,
    RateLimiter,
    RateLimitSource,
    TokenBucket,
)

if TYPE_CHECKING:
    from conftest import FakeClock


class TestBucketConfig:
    """Tests for BucketConfig validation."""

    def test_capacity_below_one_raises(self) -> None:
        """A bucket that can never hold a whole token is rejected."""
        with pytest.raises(ValueError, match="capacity must be at least 1"):
            BucketConfig(capacity=0.058, refill_rate=0.058)

    def test_non_positive_rate_raises(self) -> None:
        """A bucket that never refills is rejected."""
        with pytest.raises(ValueError, match="refill_rate must be positive"):
            BucketConfig(capacity=1, refill_rate=0)

    def test_default_quotas(self) -> None:
        """Defaults should match the providers' published quotas."""
        assert DEFAULT_BUCKETS[RateLimitSource.AMAZON_PAAPI] == BucketConfig(1, 1)
        assert DEFAULT_BUCKETS[RateLimitSource.AMAZON_RAPIDAPI] == BucketConfig(5, 5)
        ebay = DEFAULT_BUCKETS[RateLimitSource.EBAY]
        assert ebay.capacity == 1
        assert ebay.refill_rate == pytest.approx(0.0579, abs=1e-4)


class TestTokenBucket:
    """Tests for TokenBucket."""

    def test_starts_full(self, clock: FakeClock) -> None:
        """A new bucket should admit immediately."""
        bucket = TokenBucket(5, 5, clock=clock, sleep=clock.sleep)

        assert bucket.tokens == 5
        assert bucket.can_admit_now() is True
        assert bucket.wait_time_ms() == 0

    @pytest.mark.asyncio
    async def test_first_admit_does_not_wait(self, clock: FakeClock) -> None:
        """The first request should go out without delay."""
        bucket = TokenBucket(1, 1, clock=clock, sleep=clock.sleep)

        waited = await bucket.admit()

        assert waited == 0
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_wait_time_after_draining(self, clock: FakeClock) -> None:
        """An empty 1/s bucket should need a full second."""
        bucket = TokenBucket(1, 1, clock=clock, sleep=clock.sleep)
        await bucket.admit()

        assert bucket.can_admit_now() is False
        assert bucket.wait_time_ms() == 1000

        clock.advance(0.25)

        assert bucket.wait_time_ms() == 750

    @pytest.mark.asyncio
    async def test_sequential_admits_are_spaced(self, clock: FakeClock) -> None:
        """N admits at 1/s should take at least N-1 seconds."""
        bucket = TokenBucket(1, 1, clock=clock, sleep=clock.sleep)
        start = clock.now

        for _ in range(5):
            await bucket.admit()

        assert clock.now - start >= 4
        assert clock.sleeps == [1.0, 1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_burst_up_to_capacity(self, clock: FakeClock) -> None:
        """A full bucket should admit a burst of `capacity` without waiting."""
        bucket = TokenBucket(5, 5, clock=clock, sleep=clock.sleep)

        for _ in range(5):
            assert await bucket.admit() == 0

        await bucket.admit()

        assert clock.sleeps == [pytest.approx(0.2)]

    @pytest.mark.asyncio
    async def test_refill_is_capped(self, clock: FakeClock) -> None:
        """Idle time should never bank more than capacity."""
        bucket = TokenBucket(2, 1, clock=clock, sleep=clock.sleep)
        await bucket.admit()

        clock.advance(3600)
        bucket.can_admit_now()

        assert bucket.tokens == 2

    @pytest.mark.asyncio
    async def test_concurrent_admits_are_serialized(self, clock: FakeClock) -> None:
        """Concurrent callers should each wait for their own token."""
        bucket = TokenBucket(1, 1, clock=clock, sleep=clock.sleep)
        start = clock.now

        waits = await asyncio.gather(*(bucket.admit() for _ in range(3)))

        assert sorted(waits) == [0.0, 1.0, 1.0]
        assert clock.now - start >= 2

    @pytest.mark.asyncio
    async def test_slow_refill_wait(self, clock: FakeClock) -> None:
        """The eBay quota should space requests by roughly 17.3 seconds."""
        config = DEFAULT_BUCKETS[RateLimitSource.EBAY]
        bucket = TokenBucket(config.capacity, config.refill_rate, clock=clock, sleep=clock.sleep)
        await bucket.admit()

        assert 17270 <= bucket.wait_time_ms() <= 17281


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_has_all_default_sources(self) -> None:
        """A default limiter should own a bucket per source."""
        limiter = RateLimiter()

        assert set(limiter.sources) == set(RateLimitSource)

    def test_bucket_is_stable(self) -> None:
        """The same bucket should be returned for the life of the limiter."""
        limiter = RateLimiter()

        assert limiter.bucket(RateLimitSource.EBAY) is limiter.bucket(RateLimitSource.EBAY)

    def test_missing_source(self) -> None:
        """Unconfigured sources should raise on bucket() and be inert otherwise."""
        limiter = RateLimiter({RateLimitSource.EBAY: BucketConfig(1, 1)})

        with pytest.raises(ValueError, match="No rate limit configured"):
            limiter.bucket(RateLimitSource.AMAZON_PAAPI)
        assert limiter.can_admit_now(RateLimitSource.AMAZON_PAAPI) is False
        assert limiter.wait_time_ms(RateLimitSource.AMAZON_PAAPI) == 0

    @pytest.mark.asyncio
    async def test_sources_are_independent(self, clock: FakeClock) -> None:
        """Draining one source should not affect another."""
        limiter = RateLimiter(clock=clock, sleep=clock.sleep)

        await limiter.admit(RateLimitSource.AMAZON_PAAPI)

        assert limiter.can_admit_now(RateLimitSource.AMAZON_PAAPI) is False
        assert limiter.can_admit_now(RateLimitSource.EBAY) is True
        assert limiter.wait_time_ms(RateLimitSource.AMAZON_PAAPI) == 1000
