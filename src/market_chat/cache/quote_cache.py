"""Two-tier quote cache: process-local map in front of Redis.

Redis is authoritative across processes and restarts; the local tier only
saves a network round trip for hot symbols. A quote copied from Redis into
the local tier keeps only the lifetime it had left in Redis.
"""
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from market_chat.schemas import Quote

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    quote: Quote
    expires_at: float


class LocalQuoteCache:
    """In-process quote map keyed by symbol.

    Constructed once per process and passed to the resolver. Concurrent
    requests may overwrite each other's entries; quotes are immutable so the
    last write wins. Each entry carries its own expiry so a quote copied from
    Redis keeps only the lifetime it had left there.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, symbol: str) -> Quote | None:
        """Return the cached quote if it has not expired; drop it otherwise."""
        entry = self._entries.get(symbol)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(symbol, None)
            return None
        return entry.quote

    def set(self, symbol: str, quote: Quote, ttl_seconds: float | None = None) -> None:
        """Store a quote for ``ttl_seconds``, capped at the cache TTL."""
        ttl = self._ttl if ttl_seconds is None else min(ttl_seconds, self._ttl)
        if ttl <= 0:
            self._entries.pop(symbol, None)
            return
        self._entries[symbol] = CacheEntry(quote=quote, expires_at=self._clock() + ttl)


class RedisQuoteCache:
    """Shared quote cache in Redis; entries expire via SET EX.

    Redis failures are logged and behave like a miss (get) or a skipped
    write (set).
    """

    def __init__(
        self,
        redis: Redis,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        key_prefix: str = "quote",
    ) -> None:
        self._redis = redis
        self._ttl = max(1, int(ttl_seconds))
        self._prefix = key_prefix

    def _key(self, symbol: str) -> str:
        return f"{self._prefix}:{symbol}"

    async def get(self, symbol: str) -> tuple[Quote, float] | None:
        """Return the cached quote with its remaining lifetime in seconds."""
        key = self._key(symbol)
        try:
            raw = await self._redis.get(key)
            if raw is None:
                return None
            remaining_ms = await self._redis.pttl(key)
        except RedisError as exc:
            logger.warning("Redis quote cache read failed for %s: %s", symbol, exc)
            return None
        # -2: expired between GET and PTTL; -1: no expiry set.
        if remaining_ms == -2:
            return None
        remaining = self._ttl if remaining_ms < 0 else remaining_ms / 1000
        try:
            return Quote.model_validate_json(raw), remaining
        except ValidationError:
            logger.warning("Discarding malformed cached quote for %s", symbol)
            return None

    async def set(self, symbol: str, quote: Quote) -> None:
        try:
            await self._redis.set(self._key(symbol), quote.model_dump_json(), ex=self._ttl)
        except RedisError as exc:
            logger.warning("Redis quote cache write failed for %s: %s", symbol, exc)


class TieredQuoteCache:
    """Consults the local tier, then Redis; writes go through to both."""

    def __init__(
        self, local: LocalQuoteCache, remote: RedisQuoteCache | None = None
    ) -> None:
        self._local = local
        self._remote = remote

    async def get(self, symbol: str) -> Quote | None:
        quote = self._local.get(symbol)
        if quote is not None:
            logger.debug("Local cache hit for %s", symbol)
            return quote
        if self._remote is None:
            return None
        hit = await self._remote.get(symbol)
        if hit is None:
            return None
        quote, remaining = hit
        logger.debug("Redis cache hit for %s (%.1fs left)", symbol, remaining)
        self._local.set(symbol, quote, ttl_seconds=remaining)
        return quote

    async def set(self, symbol: str, quote: Quote) -> None:
        self._local.set(symbol, quote)
        if self._remote is not None:
            await self._remote.set(symbol, quote)
