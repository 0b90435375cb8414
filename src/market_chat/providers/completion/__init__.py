"""Upstream language-completion client."""
from market_chat.providers.completion.openrouter_client import OpenRouterClient

__all__ = ["OpenRouterClient"]
