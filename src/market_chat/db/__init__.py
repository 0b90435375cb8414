"""Database package: chat history model and session management."""
from market_chat.db.models import ChatMessage

__all__ = ["ChatMessage"]
