# backend/planner/schemas/availability.py
"""
Availability window schemas.

Windows carry a status and an optional note. Unlike time blocks they may
overlap, so there is no conflict information in any response.
"""

import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.enums import AvailabilityStatus
from ..models.types import ensure_utc
from ._strict_base import StrictRequestModel
from .base import StandardizedModel

DateTimeType = datetime.datetime


def _normalize_datetime(value: Optional[DateTimeType]) -> Optional[DateTimeType]:
    return ensure_utc(value) if value is not None else None


class AvailabilityCreate(StrictRequestModel):
    start_time: DateTimeType
    end_time: DateTimeType
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: Optional[DateTimeType]) -> Optional[DateTimeType]:
        return _normalize_datetime(v)


class AvailabilityUpdate(StrictRequestModel):
    start_time: Optional[DateTimeType] = None
    end_time: Optional[DateTimeType] = None
    status: Optional[AvailabilityStatus] = None
    note: Optional[str] = Field(None, max_length=500)
    expected_version: Optional[int] = Field(None, ge=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: Optional[DateTimeType]) -> Optional[DateTimeType]:
        return _normalize_datetime(v)


class AvailabilityRead(StandardizedModel):
    """Response schema for an availability window."""

    id: str
    owner_id: str
    start_time: DateTimeType
    end_time: DateTimeType
    status: AvailabilityStatus
    note: Optional[str] = None
    version: int
    created_at: Optional[DateTimeType] = None
    updated_at: Optional[DateTimeType] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
