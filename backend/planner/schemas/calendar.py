# backend/planner/schemas/calendar.py
"""
Calendar view and aggregation schemas.

Everything here is derived data: recomputed per request (or served from the
calendar cache), never written back to the store.
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import CalendarView, SortOrder
from .availability import AvailabilityRead
from .base import StandardizedModel
from .time_block import TimeBlockRead

DateType = datetime.date
DateTimeType = datetime.datetime


class PaginationOptions(BaseModel):
    """
    Paging, search and sort request for the pagination engine.

    Out-of-range page/limit values are accepted here and clamped by the
    engine (page >= 1, 1 <= limit <= max limit).
    """

    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    sort_by: str = "start_time"
    sort_order: SortOrder = SortOrder.ASC


class TimeBlockPage(StandardizedModel):
    items: List[TimeBlockRead] = Field(default_factory=list)
    total: int
    page: int
    limit: int
    total_pages: int


class CalendarWindowResponse(StandardizedModel):
    view: CalendarView
    reference_date: DateType
    start_date: DateType
    end_date: DateType


class WeeksInMonthResponse(StandardizedModel):
    year: int
    month: int
    weeks: List[List[DateType]]


class BlockPosition(StandardizedModel):
    """
    Layout hints for the client.

    Day view fills top/height (pixels on a 1000px column), week view fills
    left/width (percent of the row), month view fills display_date.
    """

    top: Optional[float] = None
    height: Optional[float] = None
    left: Optional[float] = None
    width: Optional[float] = None
    display_date: Optional[DateType] = None


class PositionedTimeBlock(TimeBlockRead):
    position: BlockPosition


class CalendarViewResponse(StandardizedModel):
    window: CalendarWindowResponse
    time_blocks: List[PositionedTimeBlock] = Field(default_factory=list)
    total: int
    paginated: bool = False


class DaySummary(StandardizedModel):
    """Synthetic per-day stand-in used by zoomed-out month views."""

    id: str
    title: str
    start_time: DateTimeType
    end_time: DateTimeType
    count: int
    color: str


class UserSummary(StandardizedModel):
    id: str
    email: str
    display_name: str
    timezone: str

    model_config = ConfigDict(from_attributes=True)


class TeamCalendarResponse(StandardizedModel):
    time_blocks: TimeBlockPage
    availability: List[AvailabilityRead] = Field(default_factory=list)


class UserCalendarResponse(TeamCalendarResponse):
    user: UserSummary
