# backend/planner/schemas/__init__.py
"""
Pydantic schemas for the planner API.
"""

from .availability import AvailabilityCreate, AvailabilityRead, AvailabilityUpdate
from .calendar import (
    BlockPosition,
    CalendarViewResponse,
    CalendarWindowResponse,
    DaySummary,
    PaginationOptions,
    PositionedTimeBlock,
    TeamCalendarResponse,
    TimeBlockPage,
    UserCalendarResponse,
    UserSummary,
    WeeksInMonthResponse,
)
from .time_block import TimeBlockCreate, TimeBlockRead, TimeBlockUpdate

__all__ = [
    "AvailabilityCreate",
    "AvailabilityRead",
    "AvailabilityUpdate",
    "BlockPosition",
    "CalendarViewResponse",
    "CalendarWindowResponse",
    "DaySummary",
    "PaginationOptions",
    "PositionedTimeBlock",
    "TeamCalendarResponse",
    "TimeBlockCreate",
    "TimeBlockPage",
    "TimeBlockRead",
    "TimeBlockUpdate",
    "UserCalendarResponse",
    "UserSummary",
    "WeeksInMonthResponse",
]
