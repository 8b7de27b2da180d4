# backend/planner/utils/calendar_window.py
"""
Calendar window arithmetic.

Pure functions mapping a reference date and a view granularity onto the
inclusive date range the calendar renders. Weeks start on Sunday, so the
week window for Thursday 2023-06-15 is 2023-06-11 .. 2023-06-17.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Tuple, Union

from ..core.enums import CalendarView

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class CalendarWindow:
    view: CalendarView
    reference_date: date
    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def _as_date(value: DateLike) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_week(d: DateLike) -> date:
    """Sunday of the week containing ``d``."""
    day = _as_date(d)
    # date.weekday(): Monday == 0 ... Sunday == 6
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def end_of_week(d: DateLike) -> date:
    """Saturday of the week containing ``d``."""
    return start_of_week(d) + timedelta(days=6)


def start_of_month(d: DateLike) -> date:
    day = _as_date(d)
    return day.replace(day=1)


def end_of_month(d: DateLike) -> date:
    day = _as_date(d)
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def weeks_in_month(year: int, month: int) -> List[List[date]]:
    """
    Sunday-first grid of 7-day weeks fully covering a month.

    The first week starts at the Sunday on or before the 1st; the last week
    contains the final day of the month. Padding days come from the
    neighbouring months. Always 4 to 6 weeks.
    """
    first = date(year, month, 1)
    last = end_of_month(first)

    weeks: List[List[date]] = []
    cursor = start_of_week(first)
    while cursor <= last:
        weeks.append([cursor + timedelta(days=offset) for offset in range(7)])
        cursor += timedelta(days=7)
    return weeks


def window_for(view: CalendarView, reference_date: DateLike) -> Tuple[date, date]:
    """Inclusive (start_date, end_date) for a view around ``reference_date``."""
    ref = _as_date(reference_date)
    view = CalendarView(view)
    if view is CalendarView.DAY:
        return ref, ref
    if view is CalendarView.WEEK:
        return start_of_week(ref), end_of_week(ref)
    return start_of_month(ref), end_of_month(ref)


def compute_window(view: CalendarView, reference_date: DateLike) -> CalendarWindow:
    view = CalendarView(view)
    start_date, end_date = window_for(view, reference_date)
    return CalendarWindow(
        view=view,
        reference_date=_as_date(reference_date),
        start_date=start_date,
        end_date=end_date,
    )


def shift_months(d: DateLike, months: int) -> date:
    """
    Same day-of-month ``months`` later (negative for earlier).

    Days past the end of the target month are clamped to its last day, so
    Jan 31 + 1 month is Feb 28, or Feb 29 in a leap year.
    """
    day = _as_date(d)
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def _step(view: CalendarView, reference_date: DateLike, steps: int) -> date:
    ref = _as_date(reference_date)
    view = CalendarView(view)
    if view is CalendarView.DAY:
        return ref + timedelta(days=steps)
    if view is CalendarView.WEEK:
        return ref + timedelta(weeks=steps)
    return shift_months(ref, steps)


def next_reference_date(view: CalendarView, reference_date: DateLike) -> date:
    """Reference date one view-length after ``reference_date`` (day, week or month)."""
    return _step(view, reference_date, 1)


def previous_reference_date(view: CalendarView, reference_date: DateLike) -> date:
    return _step(view, reference_date, -1)


def day_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """UTC datetimes spanning start_date 00:00 through end_date 23:59:59.999999."""
    return (
        datetime.combine(start_date, time.min, tzinfo=timezone.utc),
        datetime.combine(end_date, time.max, tzinfo=timezone.utc),
    )


def window_bounds(window: CalendarWindow) -> Tuple[datetime, datetime]:
    """Store query bounds for a computed window."""
    return day_bounds(window.start_date, window.end_date)
