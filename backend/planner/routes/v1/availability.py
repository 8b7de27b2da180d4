# backend/planner/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints under /api/v1/availability for the caller's own windows.

Endpoints:
    POST /                    → Declare a window
    GET /                     → List own windows (optional start/end)
    PATCH /{availability_id}  → Partial update
    DELETE /{availability_id} → Delete
"""

import asyncio
from datetime import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import get_availability_service, get_current_user_id
from ...core.exceptions import DomainException
from ...schemas.availability import AvailabilityCreate, AvailabilityRead, AvailabilityUpdate
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.post("", response_model=AvailabilityRead, status_code=status.HTTP_201_CREATED)
async def set_availability(
    payload: AvailabilityCreate,
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityRead:
    try:
        window = await asyncio.to_thread(service.set_availability, current_user_id, payload)
        return AvailabilityRead.model_validate(window)
    except DomainException as e:
        raise e.to_http_exception()


@router.get("", response_model=List[AvailabilityRead])
async def list_availability(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[AvailabilityRead]:
    try:
        windows = await asyncio.to_thread(service.list_availability, current_user_id, start, end)
        return [AvailabilityRead.model_validate(window) for window in windows]
    except DomainException as e:
        raise e.to_http_exception()


@router.patch("/{availability_id}", response_model=AvailabilityRead)
async def update_availability(
    availability_id: str,
    payload: AvailabilityUpdate,
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityRead:
    try:
        window = await asyncio.to_thread(
            service.update_availability, availability_id, current_user_id, payload
        )
        return AvailabilityRead.model_validate(window)
    except DomainException as e:
        raise e.to_http_exception()


@router.delete("/{availability_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_availability(
    availability_id: str,
    expected_version: Optional[int] = Query(None, ge=1),
    current_user_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    try:
        await asyncio.to_thread(
            service.delete_availability, availability_id, current_user_id, expected_version
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        raise e.to_http_exception()
