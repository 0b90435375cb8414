"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

No external DI container. Lifespan (main.py) creates the cache, providers and
services once and attaches them to app.state; these getters are used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Request

from market_chat.services import ChatService, QuoteResolver


def get_chat_service(request: Request) -> ChatService:
    """Resolve the ChatService from app.state (created at startup)."""
    return request.app.state.chat_service


def get_quote_resolver(request: Request) -> QuoteResolver:
    """Resolve the shared QuoteResolver from app.state."""
    return request.app.state.quote_resolver


def get_network_id(request: Request) -> str:
    """Caller network identity: first X-Forwarded-For hop, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client is not None:
        return request.client.host
    return "unknown"


# Type aliases for route injection
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
QuoteResolverDep = Annotated[QuoteResolver, Depends(get_quote_resolver)]
NetworkId = Annotated[str, Depends(get_network_id)]
