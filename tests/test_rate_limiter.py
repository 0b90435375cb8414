"""Tests for market_chat.services.rate_limiter.

Redis is replaced with tests.fakes.FakeRedis; no live Redis required.
"""
import pytest

from market_chat.services.rate_limiter import RateLimiter
from tests.fakes import FakeRedis

DAY = 24 * 60 * 60


class Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def limiter(redis, clock):
    return RateLimiter(redis, max_requests=10, window_seconds=DAY, clock=clock)


async def _use(limiter, clock, identity, times):
    for _ in range(times):
        assert await limiter.check(identity)
        clock.now += 1


async def test_allows_up_to_limit(limiter, clock):
    await _use(limiter, clock, "1.2.3.4", 10)
    assert await limiter.usage("1.2.3.4") == 10


async def test_rejects_when_count_equals_limit(limiter, clock):
    await _use(limiter, clock, "1.2.3.4", 10)
    assert await limiter.check("1.2.3.4") is False


async def test_last_allowed_request_fills_window(limiter, clock):
    await _use(limiter, clock, "1.2.3.4", 9)
    assert await limiter.usage("1.2.3.4") == 9
    assert await limiter.check("1.2.3.4") is True
    assert await limiter.usage("1.2.3.4") == 10


async def test_rejected_requests_do_not_consume_quota(limiter, clock):
    await _use(limiter, clock, "1.2.3.4", 10)
    for _ in range(3):
        assert await limiter.check("1.2.3.4") is False
    assert await limiter.usage("1.2.3.4") == 10


async def test_window_rollover_frees_quota(limiter, clock):
    start = clock.now
    await _use(limiter, clock, "1.2.3.4", 10)
    assert await limiter.check("1.2.3.4") is False

    clock.now = start + DAY
    assert await limiter.check("1.2.3.4") is True


async def test_identities_are_isolated(limiter, clock):
    await _use(limiter, clock, "1.2.3.4", 10)
    assert await limiter.check("5.6.7.8") is True


async def test_key_gets_window_ttl(limiter, redis):
    await limiter.check("1.2.3.4")
    assert redis.expiries["ratelimit:chat:1.2.3.4"] == DAY


async def test_store_failure_fails_open(limiter, redis):
    redis.fail = True
    assert await limiter.check("1.2.3.4") is True
    assert await limiter.usage("1.2.3.4") == 0
