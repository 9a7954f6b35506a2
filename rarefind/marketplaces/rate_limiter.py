"""
Token-bucket rate limiting for marketplace APIs.

Each provider source owns one bucket for the life of the process. The bucket
refills continuously at ``refill_rate`` tokens per second, capped at
``capacity``; every outbound request consumes exactly one token.

Published quotas:
    - Amazon PA-API: 1 request per second.
    - RapidAPI Real-Time Amazon Data: bursts of 5, 5 per second.
    - eBay Finding API: 5000 requests per day (~0.058 per second).
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from rarefind.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

logger = get_logger(__name__)


class RateLimitSource(str, Enum):
    """Independently throttled API sources."""

    AMAZON_PAAPI = "amazon"
    AMAZON_RAPIDAPI = "amazon-rapidapi"
    EBAY = "ebay"


@dataclass(frozen=True, slots=True)
class BucketConfig:
    """
    Capacity and refill rate of one bucket.

    Attributes:
        capacity: Maximum tokens held; must allow at least one request.
        refill_rate: Tokens added per second.
    """

    capacity: float
    refill_rate: float

    def __post_init__(self) -> None:
        """Validate bucket configuration."""
        if self.capacity < 1:
            msg = "capacity must be at least 1"
            raise ValueError(msg)
        if self.refill_rate <= 0:
            msg = "refill_rate must be positive"
            raise ValueError(msg)


DEFAULT_BUCKETS: dict[RateLimitSource, BucketConfig] = {
    RateLimitSource.AMAZON_PAAPI: BucketConfig(capacity=1, refill_rate=1),
    RateLimitSource.AMAZON_RAPIDAPI: BucketConfig(capacity=5, refill_rate=5),
    RateLimitSource.EBAY: BucketConfig(capacity=1, refill_rate=5000 / 86400),
}


class TokenBucket:
    """
    A single token bucket.

    Buckets start full. ``admit`` holds an asyncio lock across the whole
    refill, wait and deduct sequence, so concurrent callers queue up instead
    of both spending the same token.

    Attributes:
        name: Label used in log events.
        capacity: Maximum number of tokens.
        refill_rate: Tokens added per second.
        tokens: Current (fractional) token count.
    """

    def __init__(
        self,
        capacity: float,
        refill_rate: float,
        *,
        name: str = "bucket",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """
        Initialize a full bucket.

        Args:
            capacity: Maximum tokens; at least 1.
            refill_rate: Tokens per second; positive.
            name: Label used in log events.
            clock: Monotonic time source in seconds.
            sleep: Coroutine used to wait for tokens.
        """
        config = BucketConfig(capacity=capacity, refill_rate=refill_rate)
        self.name = name
        self.capacity = config.capacity
        self.refill_rate = config.refill_rate
        self.tokens = float(config.capacity)
        self._clock = clock
        self._sleep = sleep
        self._last_refill = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self._last_refill = now

    def can_admit_now(self) -> bool:
        """Return True if a request could be made without waiting."""
        self._refill()
        return self.tokens >= 1

    def wait_time_ms(self) -> int:
        """Milliseconds until one token is available (0 if one already is)."""
        self._refill()
        if self.tokens >= 1:
            return 0
        return math.ceil((1 - self.tokens) / self.refill_rate * 1000)

    async def admit(self) -> float:
        """
        Wait until a token is available, then consume it.

        The refill is deterministic, so after sleeping the computed wait the
        token is deducted without re-checking. Sleep overshoot only adds
        tokens, which the capacity cap absorbs.

        Returns:
            Seconds spent waiting.
        """
        async with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return 0.0

            wait_ms = math.ceil((1 - self.tokens) / self.refill_rate * 1000)
            logger.debug("Rate limit wait", bucket=self.name, wait_ms=wait_ms)
            await self._sleep(wait_ms / 1000)
            self._refill()
            self.tokens -= 1
            return wait_ms / 1000


class RateLimiter:
    """
    Owner of one TokenBucket per rate-limit source.

    Build one instance at startup and hand ``bucket(source)`` to each client;
    the buckets then live for as long as the limiter does.

    Example:
        >>> limiter = RateLimiter()
        >>> await limiter.admit(RateLimitSource.EBAY)
    """

    def __init__(
        self,
        configs: Mapping[RateLimitSource, BucketConfig] | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """
        Create a bucket for every configured source.

        Args:
            configs: Per-source bucket settings; defaults to DEFAULT_BUCKETS.
            clock: Monotonic time source shared by all buckets.
            sleep: Coroutine used to wait for tokens.
        """
        self._buckets: dict[RateLimitSource, TokenBucket] = {
            source: TokenBucket(
                config.capacity,
                config.refill_rate,
                name=source.value,
                clock=clock,
                sleep=sleep,
            )
            for source, config in (configs or DEFAULT_BUCKETS).items()
        }

    def bucket(self, source: RateLimitSource) -> TokenBucket:
        """
        Return the bucket for a source.

        Raises:
            ValueError: If no bucket is configured for the source.
        """
        try:
            return self._buckets[source]
        except KeyError:
            msg = f"No rate limit configured for source: {source}"
            raise ValueError(msg) from None

    def can_admit_now(self, source: RateLimitSource) -> bool:
        """Return True if ``source`` could be called without waiting."""
        bucket = self._buckets.get(source)
        return bucket.can_admit_now() if bucket is not None else False

    def wait_time_ms(self, source: RateLimitSource) -> int:
        """Milliseconds until ``source`` has a token."""
        bucket = self._buckets.get(source)
        return bucket.wait_time_ms() if bucket is not None else 0

    async def admit(self, source: RateLimitSource) -> float:
        """Wait for and consume one token from ``source``'s bucket."""
        return await self.bucket(source).admit()

    @property
    def sources(self) -> list[RateLimitSource]:
        """Return the configured sources."""
        return list(self._buckets)
