"""
Engine, session factory and declarative base for the interval store.

SQLite (the default) is opened with check_same_thread disabled because the
team calendar runs its range queries in worker threads. Server databases
get a small pool that fails fast when exhausted; the repositories turn that
timeout into a retriable TransientStoreFailure.
"""

from __future__ import annotations

import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from planner.core.config import settings

logger = logging.getLogger(__name__)


def _engine_options(db_url: str) -> dict[str, Any]:
    if db_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "future": True}
    return {
        "pool_size": 5,
        "max_overflow": 5,
        "pool_timeout": 2,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "future": True,
    }


def create_db_engine(db_url: str) -> Engine:
    db_engine = create_engine(db_url, **_engine_options(db_url))

    @event.listens_for(db_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        if db_engine.dialect.name == "sqlite":
            # ON DELETE CASCADE is ignored unless enabled per connection
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        logger.debug(f"Opened store connection ({db_engine.dialect.name})")

    return db_engine


engine: Engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """One session per request; services own commit/rollback, this only cleans up."""
    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Engine | None = None) -> None:
    """Create every table registered on Base.metadata (no-op for existing tables)."""
    import planner.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Store tables ready")


__all__ = [
    "Base",
    "SessionLocal",
    "create_db_engine",
    "engine",
    "get_db",
    "init_db",
]
