"""Database engine and session management."""
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from market_chat.db.models import ChatMessage  # noqa: F401  # pylint: disable=unused-import


def create_db_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create the synchronous SQLModel engine.

    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@contextmanager
def get_session(engine: Engine) -> Generator[Session, None, None]:
    """Yield a database session; commits on success, rolls back on error."""
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call on startup (idempotent for existing tables)."""
    SQLModel.metadata.create_all(engine)
