# backend/planner/utils/intervals.py
"""Half-open interval predicates shared by the conflict detector and loaders."""

from datetime import datetime
from typing import Protocol


class IntervalLike(Protocol):
    id: str
    start_time: datetime
    end_time: datetime


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open overlap test: [a_start, a_end) and [b_start, b_end) intersect.

    Touching boundaries (a_end == b_start) are adjacent, not overlapping.
    """
    return a_start < b_end and b_start < a_end


def intersects_closed(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> bool:
    """Inclusive intersection with [window_start, window_end]; touching counts."""
    return start <= window_end and end >= window_start


def is_valid_range(start: datetime, end: datetime) -> bool:
    return start < end
