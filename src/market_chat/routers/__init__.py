"""API routers.

- /chat - streaming market-context chat (NDJSON)
- /chat/complete - non-streaming chat
- /quotes - single-symbol quote lookup
"""
from market_chat.routers.chat import router as chat_router
from market_chat.routers.quotes import router as quotes_router

__all__ = ["chat_router", "quotes_router"]
