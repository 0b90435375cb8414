"""Database models for the market chat service.

Only chat history is persisted. Quotes live in the process cache and Redis
and are never written to the database.
"""
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatMessage(SQLModel, table=True):
    """One message of a conversation; an exchange is two rows (user, assistant)."""

    __tablename__ = "chat_history"

    id: int | None = Field(default=None, primary_key=True)
    session_id: str = Field(index=True)
    user_id: str | None = Field(default=None, index=True)
    mode: str  # general | market | crypto
    role: str  # user | assistant
    content: str
    created_at: datetime = Field(default_factory=_utcnow)
