# backend/planner/api/dependencies/database.py
"""
Database-related dependencies.
"""

from typing import Callable, Generator

from sqlalchemy.orm import Session

from ...database import SessionLocal, get_db as original_get_db


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; closed when the response is sent."""
    yield from original_get_db()


def get_session_factory() -> Callable[[], Session]:
    """Session factory for services that open one session per concurrent query."""
    return SessionLocal
