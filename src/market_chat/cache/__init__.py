"""Quote caching tiers."""
from market_chat.cache.quote_cache import (CacheEntry, LocalQuoteCache,
                                           RedisQuoteCache, TieredQuoteCache)

__all__ = ["CacheEntry", "LocalQuoteCache", "RedisQuoteCache", "TieredQuoteCache"]
