"""Calendar window arithmetic: Sunday-first weeks, month bounds and week grids."""

from datetime import date, datetime, timezone

import pytest

from planner.core.enums import CalendarView
from planner.utils.calendar_window import (
    compute_window,
    day_bounds,
    end_of_month,
    end_of_week,
    next_reference_date,
    previous_reference_date,
    shift_months,
    start_of_month,
    start_of_week,
    weeks_in_month,
    window_for,
)


@pytest.mark.unit
class TestWeekBounds:
    def test_thursday_maps_to_sunday_through_saturday(self):
        assert start_of_week(date(2023, 6, 15)) == date(2023, 6, 11)
        assert end_of_week(date(2023, 6, 15)) == date(2023, 6, 17)

    def test_sunday_starts_its_own_week(self):
        assert start_of_week(date(2023, 6, 11)) == date(2023, 6, 11)

    def test_saturday_ends_its_own_week(self):
        assert end_of_week(date(2023, 6, 17)) == date(2023, 6, 17)

    def test_week_crossing_year_boundary(self):
        # 2024-01-01 is a Monday
        assert start_of_week(date(2024, 1, 1)) == date(2023, 12, 31)
        assert end_of_week(date(2024, 1, 1)) == date(2024, 1, 6)

    def test_accepts_datetimes(self):
        moment = datetime(2023, 6, 15, 23, 30, tzinfo=timezone.utc)
        assert start_of_week(moment) == date(2023, 6, 11)


@pytest.mark.unit
class TestMonthBounds:
    def test_june(self):
        assert start_of_month(date(2023, 6, 15)) == date(2023, 6, 1)
        assert end_of_month(date(2023, 6, 15)) == date(2023, 6, 30)

    def test_leap_february(self):
        assert end_of_month(date(2024, 2, 10)) == date(2024, 2, 29)

    def test_common_february(self):
        assert end_of_month(date(2023, 2, 10)) == date(2023, 2, 28)

    def test_december(self):
        assert end_of_month(date(2023, 12, 1)) == date(2023, 12, 31)


@pytest.mark.unit
class TestWindowFor:
    @pytest.mark.parametrize(
        "view,expected",
        [
            (CalendarView.DAY, (date(2023, 6, 15), date(2023, 6, 15))),
            (CalendarView.WEEK, (date(2023, 6, 11), date(2023, 6, 17))),
            (CalendarView.MONTH, (date(2023, 6, 1), date(2023, 6, 30))),
        ],
    )
    def test_views(self, view, expected):
        assert window_for(view, date(2023, 6, 15)) == expected

    def test_accepts_string_view(self):
        assert window_for("week", date(2023, 6, 15)) == (date(2023, 6, 11), date(2023, 6, 17))

    def test_compute_window_keeps_reference_and_counts_days(self):
        window = compute_window(CalendarView.WEEK, date(2023, 6, 15))
        assert window.reference_date == date(2023, 6, 15)
        assert window.view is CalendarView.WEEK
        assert window.days == 7

    def test_day_bounds_cover_whole_days(self):
        start, end = day_bounds(date(2023, 6, 11), date(2023, 6, 17))
        assert start == datetime(2023, 6, 11, tzinfo=timezone.utc)
        assert end.date() == date(2023, 6, 17)
        assert (end.hour, end.minute, end.second) == (23, 59, 59)


@pytest.mark.unit
class TestWeeksInMonth:
    def test_june_2023_has_five_weeks(self):
        weeks = weeks_in_month(2023, 6)
        assert len(weeks) == 5
        assert weeks[0][0] == date(2023, 5, 28)
        assert weeks[-1][-1] == date(2023, 7, 1)

    def test_every_week_is_seven_consecutive_days_starting_sunday(self):
        for week in weeks_in_month(2023, 6):
            assert len(week) == 7
            assert week[0].weekday() == 6
            assert all((b - a).days == 1 for a, b in zip(week, week[1:]))

    def test_covers_every_day_of_the_month(self):
        days = {d for week in weeks_in_month(2024, 2) for d in week}
        for n in range(1, 30):
            assert date(2024, 2, n) in days

    def test_six_week_month(self):
        # July 2023 starts on a Saturday and has 31 days
        assert len(weeks_in_month(2023, 7)) == 6

    def test_four_week_month(self):
        # February 2015 starts on a Sunday and has 28 days
        weeks = weeks_in_month(2015, 2)
        assert len(weeks) == 4
        assert weeks[0][0] == date(2015, 2, 1)
        assert weeks[-1][-1] == date(2015, 2, 28)


@pytest.mark.unit
class TestNavigation:
    @pytest.mark.parametrize(
        "view, expected_next, expected_previous",
        [
            (CalendarView.DAY, date(2023, 6, 16), date(2023, 6, 14)),
            (CalendarView.WEEK, date(2023, 6, 22), date(2023, 6, 8)),
            (CalendarView.MONTH, date(2023, 7, 15), date(2023, 5, 15)),
        ],
    )
    def test_steps_one_view_length(self, view, expected_next, expected_previous):
        assert next_reference_date(view, date(2023, 6, 15)) == expected_next
        assert previous_reference_date(view, date(2023, 6, 15)) == expected_previous

    def test_day_steps_cross_month_and_year(self):
        assert next_reference_date(CalendarView.DAY, date(2023, 12, 31)) == date(2024, 1, 1)
        assert previous_reference_date(CalendarView.DAY, date(2024, 3, 1)) == date(2024, 2, 29)

    def test_month_end_is_clamped(self):
        assert next_reference_date(CalendarView.MONTH, date(2023, 1, 31)) == date(2023, 2, 28)
        assert next_reference_date(CalendarView.MONTH, date(2024, 1, 31)) == date(2024, 2, 29)
        assert previous_reference_date(CalendarView.MONTH, date(2023, 3, 31)) == date(2023, 2, 28)
        assert next_reference_date(CalendarView.MONTH, date(2023, 8, 31)) == date(2023, 9, 30)

    def test_month_steps_cross_years(self):
        assert next_reference_date(CalendarView.MONTH, date(2023, 12, 15)) == date(2024, 1, 15)
        assert previous_reference_date(CalendarView.MONTH, date(2024, 1, 15)) == date(2023, 12, 15)

    def test_shift_months_from_leap_day(self):
        assert shift_months(date(2024, 2, 29), 12) == date(2025, 2, 28)
        assert shift_months(date(2024, 2, 29), -48) == date(2020, 2, 29)

    def test_accepts_datetime(self):
        moment = datetime(2023, 6, 15, 23, 30, tzinfo=timezone.utc)
        assert next_reference_date(CalendarView.WEEK, moment) == date(2023, 6, 22)

    def test_unknown_view_is_rejected(self):
        with pytest.raises(ValueError):
            next_reference_date("year", date(2023, 6, 15))
