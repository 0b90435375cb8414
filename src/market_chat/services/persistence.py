"""Writes completed exchanges to the chat history table."""
import asyncio
import logging

from sqlalchemy.engine import Engine

from market_chat.db import ChatMessage
from market_chat.db.sessions import get_session
from market_chat.schemas import Exchange

logger = logging.getLogger(__name__)


class PersistenceSink:
    """Best-effort, never-retried persistence of one exchange as two rows.

    persist() never raises: the user already has their answer, so a failed
    write is only logged.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _write(self, exchange: Exchange) -> None:
        rows = [
            ChatMessage(
                session_id=exchange.session_id,
                user_id=exchange.identity,
                mode=exchange.mode.value,
                role=role,
                content=content,
                created_at=exchange.created_at,
            )
            for role, content in (
                ("user", exchange.user_text),
                ("assistant", exchange.assistant_text),
            )
        ]
        with get_session(self._engine) as session:
            for row in rows:
                session.add(row)
                session.flush()

    async def persist(self, exchange: Exchange) -> None:
        try:
            await asyncio.to_thread(self._write, exchange)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to persist exchange for session %s", exchange.session_id)
            return
        logger.debug("Persisted exchange for session %s", exchange.session_id)
