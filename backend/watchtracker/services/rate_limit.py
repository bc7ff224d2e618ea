"""
rate_limit.py

Request pacing for TMDB.

- IntervalRateLimiter: in-process fixed-interval pacing used by a sweep to
  space out its item checks.
- AsyncLimiter: Redis sliding window shared by every worker process, so the
  show and movie sweeps draw from one TMDB quota even when they overlap.
- with_backoff: exponential backoff around a request on rate limiting.
"""
import time
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from watchtracker.core.redis_client import get_redis

logger = logging.getLogger(__name__)

RATE_LIMITS = {
    "tmdb_api": {"limit": 40, "window": 10},  # 40 requests per 10 seconds
}


class IntervalRateLimiter:
    """Guarantees at least `interval` seconds between successive `wait()` returns."""

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_milliseconds(cls, interval_ms: int, **kwargs) -> "IntervalRateLimiter":
        return cls(interval_ms / 1000.0, **kwargs)

    async def wait(self) -> None:
        async with self._lock:
            if self._last is not None:
                remaining = self._last + self.interval - self._clock()
                if remaining > 0:
                    await self._sleep(remaining)
            self._last = self._clock()


class AsyncLimiter:
    """Redis-based rate limiter with sliding window."""

    def __init__(self, service: str, scope: str = "global"):
        self.service = service
        self.scope = scope
        self.redis = get_redis()
        self.config = RATE_LIMITS.get(service, {"limit": 10, "window": 60})

    @property
    def key(self) -> str:
        return f"rate_limit:{self.service}:{self.scope}"

    async def acquire(self) -> bool:
        """Attempt to acquire a token. Returns True if allowed, False if rate limited."""
        now = time.time()
        window = self.config["window"]
        limit = self.config["limit"]

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(self.key, 0, now - window)
        # Member must be unique per request or same-second requests collapse
        pipe.zadd(self.key, {f"{now:.6f}-{id(pipe)}": now})
        pipe.zcard(self.key)
        pipe.expire(self.key, window)

        results = await pipe.execute()
        current_count = results[2]

        if current_count > limit:
            logger.warning(f"Rate limit exceeded for {self.service} ({self.scope}): {current_count}/{limit}")
            return False

        return True

    async def get_status(self) -> Dict[str, Any]:
        """Get current quota status."""
        now = int(time.time())
        window = self.config["window"]
        limit = self.config["limit"]

        current_count = await self.redis.zcard(self.key)
        return {
            "service": self.service,
            "scope": self.scope,
            "limit": limit,
            "remaining": max(0, limit - current_count),
            "reset_time": now + window,
            "current_count": current_count,
        }


class RateLimitExceeded(Exception):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, message: str, service: str = None, status: Dict = None, retry_after: float = None):
        super().__init__(message)
        self.service = service
        self.status = status or {}
        self.retry_after = retry_after


async def check_rate_limit(service: str, scope: str = "global") -> None:
    """Check rate limit and raise exception if exceeded."""
    limiter = AsyncLimiter(service, scope)
    if not await limiter.acquire():
        status = await limiter.get_status()
        raise RateLimitExceeded(f"Rate limit exceeded for {service}", service=service, status=status)


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


async def with_backoff(func, *args, max_retries: int = 5, service: str = None, **kwargs):
    """Execute function with exponential backoff on rate limit errors."""
    delay = 1
    last_exception = None

    for attempt in range(max_retries):
        try:
            if service:
                await check_rate_limit(service)

            return await func(*args, **kwargs)

        except RateLimitExceeded as e:
            last_exception = e
            logger.warning(f"Rate limited on attempt {attempt + 1}/{max_retries}, sleeping {delay}s")
            await asyncio.sleep(delay)
            delay = min(delay * 2, 30)

        except httpx.HTTPStatusError as e:
            if e.response.status_code != 429:
                raise
            last_exception = e
            wait = _retry_after(e.response) or delay
            logger.warning(f"API rate limit response on attempt {attempt + 1}/{max_retries}, sleeping {wait}s")
            await asyncio.sleep(wait)
            delay = min(delay * 2, 30)

    raise last_exception or Exception(f"Max retries ({max_retries}) exceeded")
