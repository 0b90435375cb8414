"""Service layer: the market-context chat pipeline.

- ticker_extractor: symbols mentioned in a message
- rate_limiter: daily quota for anonymous elevated-mode callers
- quote_resolver: tiered cache + provider fallback chain
- prompt_composer: system/user messages for the completion upstream
- stream_relay: upstream SSE -> client NDJSON events
- persistence: chat history writes after a completed stream
- chat_service: orchestration of the above per request
"""
from market_chat.services.chat_service import ChatService, PreparedChat
from market_chat.services.page_extractor import PageExtractor
from market_chat.services.persistence import PersistenceSink
from market_chat.services.quote_resolver import QuoteResolver
from market_chat.services.rate_limiter import RateLimiter
from market_chat.services.stream_relay import LineTokenizer, StreamRelay
from market_chat.services.ticker_extractor import extract_tickers

__all__ = [
    "ChatService",
    "LineTokenizer",
    "PageExtractor",
    "PersistenceSink",
    "PreparedChat",
    "QuoteResolver",
    "RateLimiter",
    "StreamRelay",
    "extract_tickers",
]
