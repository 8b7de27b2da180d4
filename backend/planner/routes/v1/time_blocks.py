# backend/planner/routes/v1/time_blocks.py
"""
Time block routes - API v1

Versioned time block endpoints under /api/v1/time-blocks.
All business logic delegated to TimeBlockService.

Endpoints:
    POST /                  → Schedule a block
    GET /                   → List own blocks (optional start/end)
    GET /calendar           → Day/week/month calendar view with layout hints
    GET /overview           → Calendar window with level-of-detail applied
    GET /{time_block_id}    → Fetch one block
    PATCH /{time_block_id}  → Partial update (optional expected_version)
    DELETE /{time_block_id} → Delete (optional expected_version)
"""

import asyncio
from datetime import date, datetime
import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import (
    get_current_user_id,
    get_lazy_loading_service,
    get_time_block_service,
)
from ...core.enums import CalendarView
from ...core.exceptions import DomainException
from ...schemas.calendar import CalendarViewResponse, DaySummary
from ...schemas.time_block import TimeBlockCreate, TimeBlockRead, TimeBlockUpdate
from ...services.lazy_loading import LazyLoadingService
from ...services.time_block_service import TimeBlockService
from ...utils.calendar_window import compute_window, window_bounds

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["time-blocks-v1"])


@router.post("", response_model=TimeBlockRead, status_code=status.HTTP_201_CREATED)
async def create_time_block(
    payload: TimeBlockCreate,
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockRead:
    """
    Schedule a time block for the caller.

    Raises:
        HTTPException: 400 invalid range, 404 unknown owner, 409 overlap
    """
    try:
        block = await asyncio.to_thread(service.create_time_block, current_user_id, payload)
        return TimeBlockRead.model_validate(block)
    except DomainException as e:
        raise e.to_http_exception()


@router.get("", response_model=List[TimeBlockRead])
async def list_time_blocks(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> List[TimeBlockRead]:
    try:
        blocks = await asyncio.to_thread(service.list_time_blocks, current_user_id, start, end)
        return [TimeBlockRead.model_validate(block) for block in blocks]
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/calendar", response_model=CalendarViewResponse)
async def get_calendar_view(
    view: CalendarView = Query(CalendarView.WEEK),
    reference_date: Optional[date] = Query(None, alias="date"),
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> CalendarViewResponse:
    try:
        return await asyncio.to_thread(
            service.get_calendar_view, current_user_id, view, reference_date
        )
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/overview", response_model=List[Union[DaySummary, TimeBlockRead]])
async def get_overview(
    view: CalendarView = Query(CalendarView.MONTH),
    reference_date: Optional[date] = Query(None, alias="date"),
    zoom: float = Query(1.0, ge=0, le=1),
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
    lazy_loader: LazyLoadingService = Depends(get_lazy_loading_service),
) -> List[Union[DaySummary, TimeBlockRead]]:
    """Blocks in the window; zoomed-out month views collapse to per-day summaries."""
    try:
        window = compute_window(view, reference_date or service.clock.today())
        start, end = window_bounds(window)
        blocks = await asyncio.to_thread(service.list_time_blocks, current_user_id, start, end)
        items = [TimeBlockRead.model_validate(block) for block in blocks]
        return list(lazy_loader.with_level_of_detail(items, view, zoom))
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/{time_block_id}", response_model=TimeBlockRead)
async def get_time_block(
    time_block_id: str,
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockRead:
    try:
        block = await asyncio.to_thread(service.get_time_block, time_block_id, current_user_id)
        return TimeBlockRead.model_validate(block)
    except DomainException as e:
        raise e.to_http_exception()


@router.patch("/{time_block_id}", response_model=TimeBlockRead)
async def update_time_block(
    time_block_id: str,
    payload: TimeBlockUpdate,
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> TimeBlockRead:
    """
    Raises:
        HTTPException: 400 invalid range, 404 not found, 409 overlap or stale version
    """
    try:
        block = await asyncio.to_thread(
            service.update_time_block, time_block_id, current_user_id, payload
        )
        return TimeBlockRead.model_validate(block)
    except DomainException as e:
        raise e.to_http_exception()


@router.delete("/{time_block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_block(
    time_block_id: str,
    expected_version: Optional[int] = Query(None, ge=1),
    current_user_id: str = Depends(get_current_user_id),
    service: TimeBlockService = Depends(get_time_block_service),
) -> Response:
    try:
        await asyncio.to_thread(
            service.delete_time_block, time_block_id, current_user_id, expected_version
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        raise e.to_http_exception()
