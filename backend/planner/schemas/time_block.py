# backend/planner/schemas/time_block.py
"""
Time block schemas.

Range ordering (start_time < end_time) is deliberately not validated here:
the service raises InvalidRangeException so every entry point reports the
same error kind. Datetimes are normalised to UTC; naive values are read as
UTC.
"""

import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from ..models.types import ensure_utc
from ._strict_base import StrictRequestModel
from .base import StandardizedModel

DateTimeType = datetime.datetime

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def _normalize_datetime(value: Optional[DateTimeType]) -> Optional[DateTimeType]:
    return ensure_utc(value) if value is not None else None


def _strip_title(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Title cannot be blank")
    return stripped


class TimeBlockCreate(StrictRequestModel):
    """Payload for scheduling a new time block."""

    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    start_time: DateTimeType
    end_time: DateTimeType
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    recurrence_pattern: Optional[str] = Field(None, max_length=255)
    task_id: Optional[str] = Field(None, max_length=64)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: Optional[DateTimeType]) -> Optional[DateTimeType]:
        return _normalize_datetime(v)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _strip_title(v)


class TimeBlockUpdate(StrictRequestModel):
    """
    Partial update. Only fields that are explicitly set are applied.

    expected_version, when given, must equal the stored version or the
    update is rejected as a concurrency conflict.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    start_time: Optional[DateTimeType] = None
    end_time: Optional[DateTimeType] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    recurrence_pattern: Optional[str] = Field(None, max_length=255)
    task_id: Optional[str] = Field(None, max_length=64)
    expected_version: Optional[int] = Field(None, ge=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: Optional[DateTimeType]) -> Optional[DateTimeType]:
        return _normalize_datetime(v)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        return _strip_title(v) if v is not None else None


class TimeBlockRead(StandardizedModel):
    """Response schema for a time block."""

    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    start_time: DateTimeType
    end_time: DateTimeType
    color: Optional[str] = None
    recurrence_pattern: Optional[str] = None
    task_id: Optional[str] = None
    version: int
    created_at: Optional[DateTimeType] = None
    updated_at: Optional[DateTimeType] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
