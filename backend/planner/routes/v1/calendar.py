# backend/planner/routes/v1/calendar.py
"""
Calendar window routes - API v1

Pure date arithmetic; no store access and no caller identity needed.

Endpoints:
    GET /window    → Date range for a view around a reference date
    GET /weeks     → Sunday-first week grid for a month
    GET /navigate  → Window one view-length before or after a date, or around today
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_clock
from ...core.clock import Clock
from ...core.enums import CalendarView, NavigationDirection
from ...schemas.calendar import CalendarWindowResponse, WeeksInMonthResponse
from ...utils.calendar_window import (
    CalendarWindow,
    compute_window,
    next_reference_date,
    previous_reference_date,
    weeks_in_month,
)

router = APIRouter(tags=["calendar-v1"])


@router.get("/window", response_model=CalendarWindowResponse)
def get_window(
    view: CalendarView = Query(CalendarView.WEEK),
    reference_date: Optional[date] = Query(None, alias="date"),
    clock: Clock = Depends(get_clock),
) -> CalendarWindowResponse:
    return _window_response(compute_window(view, reference_date or clock.today()))


@router.get("/weeks", response_model=WeeksInMonthResponse)
def get_weeks(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
) -> WeeksInMonthResponse:
    return WeeksInMonthResponse(year=year, month=month, weeks=weeks_in_month(year, month))


def _window_response(window: CalendarWindow) -> CalendarWindowResponse:
    return CalendarWindowResponse(
        view=window.view,
        reference_date=window.reference_date,
        start_date=window.start_date,
        end_date=window.end_date,
    )


@router.get("/navigate", response_model=CalendarWindowResponse)
def navigate(
    direction: NavigationDirection = Query(...),
    view: CalendarView = Query(CalendarView.WEEK),
    reference_date: Optional[date] = Query(None, alias="date"),
    clock: Clock = Depends(get_clock),
) -> CalendarWindowResponse:
    """
    Window the calendar moves to from ``date`` (today when omitted).

    ``today`` ignores ``date``; month steps keep the day of month, clamped to
    the target month's length.
    """
    current = reference_date or clock.today()
    try:
        if direction is NavigationDirection.TODAY:
            target = clock.today()
        elif direction is NavigationDirection.NEXT:
            target = next_reference_date(view, current)
        else:
            target = previous_reference_date(view, current)
        window = compute_window(view, target)
    except (ValueError, OverflowError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot navigate {direction.value} from {current}: {e}",
        ) from e
    return _window_response(window)
