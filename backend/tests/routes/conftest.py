"""Route test fixtures: the FastAPI app wired to the per-test SQLite store."""

import pytest
from fastapi.testclient import TestClient

from planner.api.dependencies import get_db, get_session_factory
from planner.main import app


@pytest.fixture
def client(session_factory, cache, clock):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.state.cache_service = cache
    app.state.clock = clock

    # No context manager: the lifespan handler would create tables on the default engine
    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.cache_service = None
    app.state.clock = None


@pytest.fixture
def auth_headers(make_user):
    user = make_user("Ada")
    return {"X-User-Id": user.id}
