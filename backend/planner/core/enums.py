# backend/planner/core/enums.py
"""String enums shared by models, schemas, services and query parameters."""

from enum import Enum


class CalendarView(str, Enum):
    """Calendar granularity a window is computed for."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class AvailabilityStatus(str, Enum):
    """Declared state of a user's availability window."""

    AVAILABLE = "available"
    BUSY = "busy"
    AWAY = "away"
    OFFLINE = "offline"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortField(str, Enum):
    """Interval fields the pagination engine can sort on."""

    START_TIME = "start_time"
    END_TIME = "end_time"
    TITLE = "title"
    CREATED_AT = "created_at"


class NavigationDirection(str, Enum):
    """Calendar paging relative to the current reference date."""

    PREVIOUS = "previous"
    NEXT = "next"
    TODAY = "today"
