"""Main module for the market chat service."""
import asyncio
import logging
import subprocess
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from redis.asyncio import Redis
from redis.exceptions import RedisError

from market_chat.cache import LocalQuoteCache, RedisQuoteCache, TieredQuoteCache
from market_chat.db.sessions import create_db_engine, init_db
from market_chat.providers import (AlphaVantageProvider, CoinGeckoProvider,
                                   FinnhubProvider, OpenRouterClient,
                                   YFinanceProvider)
from market_chat.routers import chat_router, quotes_router
from market_chat.services import (ChatService, PageExtractor, PersistenceSink,
                                  QuoteResolver, RateLimiter)
from market_chat.settings import Settings, load_settings

logger = logging.getLogger(__name__)


async def connect_redis(url: str | None) -> Redis | None:
    """Connect to Redis, or return None when unset or unreachable."""
    if not url:
        logger.info("REDIS_URL not set; shared quote cache and rate limiter disabled")
        return None
    redis = Redis.from_url(url, decode_responses=True)
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis unreachable at startup, continuing without it: %s", exc)
        await redis.aclose()
        return None
    logger.info("Connected to Redis")
    return redis


def build_resolver(settings: Settings, redis: Redis | None) -> QuoteResolver:
    """Cache tiers plus the provider chain, in fallback order."""
    cache = TieredQuoteCache(
        LocalQuoteCache(ttl_seconds=settings.quote_cache_ttl_seconds),
        RedisQuoteCache(redis, ttl_seconds=settings.quote_cache_ttl_seconds)
        if redis is not None
        else None,
    )
    timeout = settings.provider_timeout_seconds
    providers = [
        CoinGeckoProvider(settings.coingecko_api_key, timeout=timeout),
        FinnhubProvider(settings.finnhub_api_key, timeout=timeout),
        YFinanceProvider(timeout=timeout),
        AlphaVantageProvider(settings.alpha_vantage_api_key, timeout=timeout),
    ]
    return QuoteResolver(cache, providers)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create the cache, providers and services at startup; close them on shutdown."""
    settings = load_settings()
    redis = await connect_redis(settings.redis_url)

    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    try:
        await asyncio.to_thread(init_db, engine)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Could not initialize chat history tables: %s", exc)

    resolver = build_resolver(settings, redis)
    completion = OpenRouterClient(
        settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        model=settings.openrouter_model,
        fallback_model=settings.openrouter_fallback_model,
        site_url=settings.site_url,
        site_name=settings.site_name,
        timeout=settings.completion_timeout_seconds,
    )
    page_extractor = PageExtractor(timeout=settings.page_fetch_timeout_seconds)
    rate_limiter = (
        RateLimiter(
            redis,
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        if redis is not None
        else None
    )
    chat_service = ChatService(
        completion=completion,
        resolver=resolver,
        sink=PersistenceSink(engine),
        rate_limiter=rate_limiter,
        page_extractor=page_extractor,
    )

    fastapi_app.state.settings = settings
    fastapi_app.state.quote_resolver = resolver
    fastapi_app.state.chat_service = chat_service

    yield

    await chat_service.drain()
    await resolver.close()
    for client in (completion, page_extractor):
        try:
            await client.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error closing %s: %s", type(client).__name__, exc)
    if redis is not None:
        await redis.aclose()
    engine.dispose()


logging.basicConfig(
    level=load_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Market Chat",
    description="Conversational news and markets assistant with live quote context",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(chat_router)
app.include_router(quotes_router)


@app.get("/")
def health():
    """Return health check status."""
    return {"status": "ok"}


def run():
    """Run the server (uvicorn). Use for the `start` script."""
    uvicorn.run("market_chat.main:app", host="127.0.0.1", port=8001)


def run_dev():
    """Run the development server with Postgres and Redis running via Docker."""
    project_root = Path(__file__).resolve().parent.parent.parent
    try:
        subprocess.run(
            ["docker", "compose", "up", "-d", "postgres", "redis"],
            cwd=project_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        print("Failed to start Postgres/Redis:", e.stderr or e.stdout, file=sys.stderr)
        sys.exit(1)
    uvicorn.run("market_chat.main:app", host="0.0.0.0", port=8000, reload=True)
