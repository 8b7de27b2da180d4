# backend/planner/api/dependencies/services.py
"""
Per-request service construction.

The cache and clock belong to the application (built in the lifespan
handler, kept on app.state) and are shared by every request.
"""

import logging
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...core.clock import Clock, system_clock
from ...services.availability_service import AvailabilityService
from ...services.cache_service import CacheService
from ...services.lazy_loading import LazyLoadingService
from ...services.team_calendar_service import TeamCalendarService
from ...services.time_block_service import TimeBlockService
from .database import get_db, get_session_factory

logger = logging.getLogger(__name__)


def get_cache_service_dep(request: Request) -> CacheService:
    """Application-owned cache service."""
    cache = getattr(request.app.state, "cache_service", None)
    if cache is None:
        cache = CacheService()
        request.app.state.cache_service = cache
    return cache


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or system_clock


def get_time_block_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    clock: Clock = Depends(get_clock),
) -> TimeBlockService:
    return TimeBlockService(db, cache, clock=clock)


def get_availability_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
) -> AvailabilityService:
    return AvailabilityService(db, cache)


def get_team_calendar_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> TeamCalendarService:
    return TeamCalendarService(db, cache, session_factory=session_factory)


def get_lazy_loading_service() -> LazyLoadingService:
    return LazyLoadingService()
