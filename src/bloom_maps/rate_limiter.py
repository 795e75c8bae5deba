"""Sliding-window limiter for calls that reach NASA POWER."""

import logging
import time
from typing import Optional

import redis.asyncio as redis

from bloom_maps.config import REDIS_URL, RATE_LIMIT_REDIS_KEY_PREFIX, RATE_LIMIT_REQUESTS_PER_SECOND

logger = logging.getLogger(__name__)

MICROSECONDS = 1_000_000


class RelayRateLimiter:
    """Global limiter for relay requests backed by a Redis sorted set.

    Every relay request shares one budget because they all hit the same
    upstream. Requests are allowed when Redis is unavailable.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        max_requests: int = RATE_LIMIT_REQUESTS_PER_SECOND,
        window_size: float = 1.0
    ):
        """Initialize the relay limiter.

        Args:
            redis_client: Redis client (connects to REDIS_URL if None)
            max_requests: Requests allowed per window
            window_size: Window length in seconds
        """
        self.redis_client = redis_client or redis.from_url(REDIS_URL)
        self.max_requests = max_requests
        self.window_size = window_size
        self.key = f"{RATE_LIMIT_REDIS_KEY_PREFIX}:upstream"

    @property
    def retry_after(self) -> int:
        return max(1, int(self.window_size * 2))

    async def is_allowed(self) -> tuple[bool, int]:
        """Record one relay request and check the shared budget.

        Returns:
            Tuple of (allowed, seconds to wait before retrying)
        """
        now = int(time.time() * MICROSECONDS)
        oldest_kept = now - self.window_size * MICROSECONDS

        try:
            async_pipe = self.redis_client.pipeline()
            async_pipe.zadd(self.key, {str(now): now})
            async_pipe.zremrangebyscore(self.key, 0, oldest_kept)
            async_pipe.zcard(self.key)
            async_pipe.expire(self.key, self.retry_after)
            in_window = (await async_pipe.execute())[2]
        except Exception as e:
            logger.error(f"Relay rate limiter unavailable, allowing request: {e}")
            return True, 0

        if in_window > self.max_requests:
            logger.debug(f"Relay budget exhausted: {in_window}/{self.max_requests}")
            return False, self.retry_after

        logger.debug(f"Relay budget used: {in_window}/{self.max_requests}")
        return True, 0

    async def close(self):
        if self.redis_client:
            await self.redis_client.aclose()
