"""Sliding-window daily quota for anonymous callers in elevated modes.

Backed by a Redis sorted set per caller: each accepted request is a member
scored by its timestamp. Trim, add, count and expire run in one MULTI/EXEC
pipeline so concurrent requests from many processes see a consistent count
without application-level locking.
"""
import logging
import time
from collections.abc import Callable
from uuid import uuid4

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 24 * 60 * 60


class RateLimiter:
    """``check(identity) -> bool`` over a shared Redis counter store.

    Rejected requests are removed again so they do not consume quota. If Redis
    errors mid-flight the request is allowed (fail-open).
    """

    def __init__(
        self,
        redis: Redis,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        key_prefix: str = "ratelimit:chat",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._redis = redis
        self._max_requests = max_requests
        self._window = window_seconds
        self._prefix = key_prefix
        self._clock = clock

    def _key(self, identity: str) -> str:
        return f"{self._prefix}:{identity}"

    async def check(self, identity: str) -> bool:
        """Record one request for ``identity`` and report whether it is allowed.

        Args:
            identity: Caller network identity (client IP).

        Returns:
            True when the request fits in the current window.
        """
        key = self._key(identity)
        now = self._clock()
        member = f"{now:.6f}:{uuid4().hex}"
        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.zremrangebyscore(key, 0, now - self._window)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.expire(key, self._window)
            _, _, count, _ = await pipe.execute()
            if count <= self._max_requests:
                logger.debug("Quota %s/%s used by %s", count, self._max_requests, identity)
                return True
            await self._redis.zrem(key, member)
        except RedisError as exc:
            logger.warning("Rate limiter store unavailable, allowing %s: %s", identity, exc)
            return True

        logger.info("Daily quota exceeded for %s", identity)
        return False

    async def usage(self, identity: str) -> int:
        """Requests counted for ``identity`` in the current window."""
        key = self._key(identity)
        now = self._clock()
        try:
            return await self._redis.zcount(key, f"({now - self._window}", "+inf")
        except RedisError as exc:
            logger.warning("Rate limiter store unavailable for %s: %s", identity, exc)
            return 0
