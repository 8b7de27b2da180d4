# backend/planner/routes/v1/team_calendar.py
"""
Team calendar routes - API v1

Endpoints:
    GET /                  → Aggregated calendar for ?user_ids=a&user_ids=b
    GET /me                → Caller's own calendar
    GET /users/{user_id}   → One user's calendar
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_current_user_id, get_team_calendar_service
from ...core.exceptions import DomainException
from ...schemas.calendar import TeamCalendarResponse, UserCalendarResponse
from ...services.team_calendar_service import TeamCalendarService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["team-calendar-v1"])


@router.get("", response_model=TeamCalendarResponse)
async def get_team_calendar(
    user_ids: List[str] = Query(..., min_length=1),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None, max_length=100),
    _: str = Depends(get_current_user_id),
    service: TeamCalendarService = Depends(get_team_calendar_service),
) -> TeamCalendarResponse:
    """
    Raises:
        HTTPException: 404 naming missing users, 503 when the store stays unavailable
    """
    try:
        return await service.get_calendar(user_ids, start_date, end_date, page, limit, search)
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/me", response_model=UserCalendarResponse)
async def get_my_calendar(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None, max_length=100),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamCalendarService = Depends(get_team_calendar_service),
) -> UserCalendarResponse:
    try:
        return await service.get_user_calendar(
            current_user_id, start_date, end_date, page, limit, search
        )
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/users/{user_id}", response_model=UserCalendarResponse)
async def get_user_calendar(
    user_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None, max_length=100),
    _: str = Depends(get_current_user_id),
    service: TeamCalendarService = Depends(get_team_calendar_service),
) -> UserCalendarResponse:
    try:
        return await service.get_user_calendar(user_id, start_date, end_date, page, limit, search)
    except DomainException as e:
        raise e.to_http_exception()
