# backend/planner/api/dependencies/__init__.py
"""FastAPI dependencies used by the v1 routers."""

from .auth import get_current_user_id
from .database import get_db, get_session_factory
from .services import (
    get_availability_service,
    get_cache_service_dep,
    get_clock,
    get_lazy_loading_service,
    get_team_calendar_service,
    get_time_block_service,
)

__all__ = [
    # Auth
    "get_current_user_id",
    # Database
    "get_db",
    "get_session_factory",
    # Services
    "get_availability_service",
    "get_cache_service_dep",
    "get_clock",
    "get_lazy_loading_service",
    "get_team_calendar_service",
    "get_time_block_service",
]
