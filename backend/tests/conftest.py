# backend/tests/conftest.py
"""
Pytest configuration shared by every test package.

Each test gets its own file-backed SQLite database under tmp_path, so
services can commit freely and the team calendar can open one session per
worker thread without sharing a connection.
"""

from datetime import datetime
import os
from typing import Callable, Iterator

# Keep tests away from any developer .env and Redis instance
os.environ.setdefault("CI", "true")
os.environ["REDIS_URL"] = ""
os.environ["ENVIRONMENT"] = "test"

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from planner.core.clock import FixedClock
from planner.database import Base, create_db_engine
import planner.models  # noqa: F401
from planner.models.time_block import TimeBlock
from planner.models.user import User
from planner.services.base import BaseService
from planner.services.cache_service import CacheService
from tests.utils.time_builders import utc


@pytest.fixture
def engine(tmp_path) -> Iterator[Engine]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'planner-test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(utc(2023, 6, 15, 12))


@pytest.fixture
def cache(clock) -> CacheService:
    """In-memory cache driven by the fixed clock."""
    return CacheService(clock=clock, redis_url="")


@pytest.fixture(autouse=True)
def _reset_service_metrics():
    BaseService._class_metrics.clear()
    yield
    BaseService._class_metrics.clear()


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(display_name: str = None, email: str = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            display_name=display_name or f"User {n}",
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_block(db) -> Callable[..., TimeBlock]:
    """Insert a block directly, bypassing conflict detection."""

    def _make(owner: User, start: datetime, end: datetime, title: str = "Focus", **extra) -> TimeBlock:
        block = TimeBlock(owner_id=owner.id, title=title, start_time=start, end_time=end, **extra)
        db.add(block)
        db.commit()
        return block

    return _make
