"""Half-open overlap and closed-range intersection predicates."""

from datetime import datetime, timedelta, timezone

import pytest

from planner.utils.intervals import intersects_closed, is_valid_range, overlaps

NINE = datetime(2023, 6, 15, 9, tzinfo=timezone.utc)
TEN = NINE + timedelta(hours=1)
ELEVEN = NINE + timedelta(hours=2)


@pytest.mark.unit
class TestOverlaps:
    def test_partial_overlap(self):
        assert overlaps(NINE, TEN, NINE + timedelta(minutes=30), ELEVEN)

    def test_is_symmetric(self):
        a = (NINE, TEN + timedelta(minutes=15))
        b = (TEN, ELEVEN)
        assert overlaps(*a, *b) == overlaps(*b, *a)

    def test_touching_boundary_is_adjacent(self):
        assert not overlaps(NINE, TEN, TEN, ELEVEN)
        assert not overlaps(TEN, ELEVEN, NINE, TEN)

    def test_containment(self):
        assert overlaps(NINE, ELEVEN, NINE + timedelta(minutes=10), NINE + timedelta(minutes=20))

    def test_identical_ranges(self):
        assert overlaps(NINE, TEN, NINE, TEN)

    def test_disjoint(self):
        assert not overlaps(NINE, TEN, ELEVEN, ELEVEN + timedelta(hours=1))


@pytest.mark.unit
class TestClosedIntersection:
    def test_touching_counts(self):
        assert intersects_closed(NINE, TEN, TEN, ELEVEN)

    def test_disjoint(self):
        assert not intersects_closed(NINE, TEN, TEN + timedelta(seconds=1), ELEVEN)


@pytest.mark.unit
def test_valid_range_requires_strict_order():
    assert is_valid_range(NINE, TEN)
    assert not is_valid_range(TEN, TEN)
    assert not is_valid_range(TEN, NINE)
