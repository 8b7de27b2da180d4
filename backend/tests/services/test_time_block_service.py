"""
TimeBlockService against a real SQLite store.

Covers the write lifecycle (conflict detection, range validation, optimistic
concurrency), calendar view layout and cache invalidation after writes.
"""

from datetime import date, timedelta
from unittest.mock import patch

import pytest

from planner.core.config import settings
from planner.core.enums import CalendarView
from planner.core.exceptions import (
    ConcurrencyConflictException,
    InvalidRangeException,
    NotFoundException,
    OwnersNotFoundException,
    SchedulingConflictException,
    ValidationException,
)
from planner.models.time_block import TimeBlock
from planner.repositories import RepositoryFactory
from planner.repositories.time_block_repository import TimeBlockRepository
from planner.schemas.time_block import TimeBlockCreate, TimeBlockUpdate
from planner.services.calendar_cache import CalendarCache
from planner.services.time_block_service import TimeBlockService
from tests.utils.time_builders import utc


def _create(title="Focus", start=None, end=None, **extra) -> TimeBlockCreate:
    return TimeBlockCreate(
        title=title,
        start_time=start or utc(2023, 6, 15, 9),
        end_time=end or utc(2023, 6, 15, 10),
        **extra,
    )


@pytest.fixture
def service(db, cache, clock):
    return TimeBlockService(db, cache, clock=clock)


@pytest.fixture
def owner(make_user):
    return make_user("Ada")


class TestCreateTimeBlock:
    def test_creates_block_with_first_version(self, service, owner):
        block = service.create_time_block(owner.id, _create(color="#ff8800", task_id="task-1"))

        assert block.id
        assert block.owner_id == owner.id
        assert block.version == 1
        assert block.color == "#ff8800"
        assert block.start_time == utc(2023, 6, 15, 9)
        assert service.get_time_block(block.id, owner.id).title == "Focus"

    def test_overlapping_block_is_rejected_with_conflicts(self, service, owner, db):
        first = service.create_time_block(owner.id, _create())

        with pytest.raises(SchedulingConflictException) as exc_info:
            service.create_time_block(
                owner.id, _create("Overlap", utc(2023, 6, 15, 9, 30), utc(2023, 6, 15, 10, 30))
            )

        assert [c.id for c in exc_info.value.conflicts] == [first.id]
        assert db.query(TimeBlock).count() == 1

    def test_adjacent_blocks_do_not_conflict(self, service, owner):
        service.create_time_block(owner.id, _create())
        after = service.create_time_block(
            owner.id, _create("After", utc(2023, 6, 15, 10), utc(2023, 6, 15, 11))
        )
        before = service.create_time_block(
            owner.id, _create("Before", utc(2023, 6, 15, 8), utc(2023, 6, 15, 9))
        )
        assert after.id and before.id

    def test_same_range_for_another_owner_is_allowed(self, service, owner, make_user):
        other = make_user("Grace")
        service.create_time_block(owner.id, _create())
        block = service.create_time_block(other.id, _create())
        assert block.owner_id == other.id

    @pytest.mark.parametrize("end_hour", [9, 8])
    def test_invalid_range_is_rejected(self, service, owner, db, end_hour):
        with pytest.raises(InvalidRangeException):
            service.create_time_block(owner.id, _create(end=utc(2023, 6, 15, end_hour)))
        assert db.query(TimeBlock).count() == 0

    def test_unknown_owner(self, service):
        with pytest.raises(OwnersNotFoundException) as exc_info:
            service.create_time_block("missing-user", _create())
        assert exc_info.value.missing_ids == ["missing-user"]

    def test_records_operation_metrics(self, service, owner):
        service.create_time_block(owner.id, _create())
        metrics = service.get_metrics()
        assert metrics["create_time_block"]["count"] == 1
        assert metrics["create_time_block"]["success_rate"] == 1.0


class TestUpdateTimeBlock:
    def test_update_may_overlap_its_own_old_range(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        updated = service.update_time_block(
            block.id,
            owner.id,
            TimeBlockUpdate(start_time=utc(2023, 6, 15, 9, 15), end_time=utc(2023, 6, 15, 10, 15)),
        )
        assert updated.start_time == utc(2023, 6, 15, 9, 15)
        assert updated.version == 2

    def test_update_into_another_block_conflicts(self, service, owner):
        service.create_time_block(owner.id, _create())
        second = service.create_time_block(
            owner.id, _create("Second", utc(2023, 6, 15, 11), utc(2023, 6, 15, 12))
        )
        with pytest.raises(SchedulingConflictException):
            service.update_time_block(
                second.id, owner.id, TimeBlockUpdate(start_time=utc(2023, 6, 15, 9, 45))
            )

    def test_partial_update_keeps_other_fields(self, service, owner):
        block = service.create_time_block(owner.id, _create(description="Deep work"))
        updated = service.update_time_block(block.id, owner.id, TimeBlockUpdate(title="Writing"))
        assert updated.title == "Writing"
        assert updated.description == "Deep work"
        assert updated.end_time == utc(2023, 6, 15, 10)

    def test_update_to_inverted_range_is_rejected(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        with pytest.raises(InvalidRangeException):
            service.update_time_block(
                block.id, owner.id, TimeBlockUpdate(end_time=utc(2023, 6, 15, 8))
            )

    def test_null_required_field_is_rejected(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        with pytest.raises(ValidationException):
            service.update_time_block(block.id, owner.id, TimeBlockUpdate(title=None))

    def test_stale_expected_version(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        service.update_time_block(block.id, owner.id, TimeBlockUpdate(title="v2", expected_version=1))

        with pytest.raises(ConcurrencyConflictException) as exc_info:
            service.update_time_block(
                block.id, owner.id, TimeBlockUpdate(title="late", expected_version=1)
            )
        assert exc_info.value.details["actual_version"] == 2
        assert service.get_time_block(block.id, owner.id).title == "v2"

    def test_concurrent_writer_is_detected_at_flush(self, service, owner, session_factory):
        block = service.create_time_block(owner.id, _create())

        first = session_factory()
        second = session_factory()
        try:
            loaded = first.get(TimeBlock, block.id)
            TimeBlockService(second).update_time_block(
                block.id, owner.id, TimeBlockUpdate(title="winner")
            )

            repository = RepositoryFactory.create_time_block_repository(first)
            with pytest.raises(ConcurrencyConflictException):
                repository.apply_changes(loaded, title="loser")
            first.rollback()
        finally:
            first.close()
            second.close()

    def test_other_owner_cannot_update(self, service, owner, make_user):
        block = service.create_time_block(owner.id, _create())
        intruder = make_user("Mallory")
        with pytest.raises(NotFoundException):
            service.update_time_block(block.id, intruder.id, TimeBlockUpdate(title="mine"))


class TestDeleteTimeBlock:
    def test_delete(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        service.delete_time_block(block.id, owner.id)
        with pytest.raises(NotFoundException):
            service.get_time_block(block.id, owner.id)

    def test_delete_with_stale_version(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        service.update_time_block(block.id, owner.id, TimeBlockUpdate(title="v2"))
        with pytest.raises(ConcurrencyConflictException):
            service.delete_time_block(block.id, owner.id, expected_version=1)
        service.delete_time_block(block.id, owner.id, expected_version=2)

    def test_freed_range_can_be_rebooked(self, service, owner):
        block = service.create_time_block(owner.id, _create())
        service.delete_time_block(block.id, owner.id)
        assert service.create_time_block(owner.id, _create()).id != block.id

    def test_delete_missing(self, service, owner):
        with pytest.raises(NotFoundException):
            service.delete_time_block("nope", owner.id)


class TestListAndCalendarView:
    def test_list_is_sorted_and_range_filtered(self, service, owner):
        late = service.create_time_block(owner.id, _create("Late", utc(2023, 6, 16, 9), utc(2023, 6, 16, 10)))
        early = service.create_time_block(owner.id, _create("Early"))
        service.create_time_block(owner.id, _create("Far", utc(2023, 7, 1, 9), utc(2023, 7, 1, 10)))

        blocks = service.list_time_blocks(owner.id, utc(2023, 6, 15), utc(2023, 6, 17))
        assert [b.id for b in blocks] == [early.id, late.id]

    def test_week_view_positions(self, service, owner):
        service.create_time_block(owner.id, _create("Morning", utc(2023, 6, 15, 6), utc(2023, 6, 15, 12)))

        view = service.get_calendar_view(owner.id, CalendarView.WEEK)

        assert view.window.start_date == date(2023, 6, 11)
        assert view.window.end_date == date(2023, 6, 17)
        assert view.total == 1
        assert view.paginated is False
        position = view.time_blocks[0].position
        assert position.top == pytest.approx(250.0)
        assert position.height == pytest.approx(250.0)
        assert position.left == pytest.approx(57.12)
        assert position.width == pytest.approx(14.28)

    def test_day_view_caps_height_at_column_end(self, service, owner):
        service.create_time_block(owner.id, _create("Late", utc(2023, 6, 15, 22), utc(2023, 6, 16, 2)))

        view = service.get_calendar_view(owner.id, CalendarView.DAY, date(2023, 6, 15))

        position = view.time_blocks[0].position
        assert position.top == pytest.approx(916.67)
        assert position.height == pytest.approx(83.33)
        assert position.left is None

    def test_month_view_sets_display_date(self, service, owner):
        service.create_time_block(owner.id, _create())
        view = service.get_calendar_view(owner.id, CalendarView.MONTH, date(2023, 6, 1))
        assert view.time_blocks[0].position.display_date == date(2023, 6, 15)
        assert view.time_blocks[0].position.top is None

    def test_large_views_are_paginated(self, service, owner, monkeypatch):
        monkeypatch.setattr(settings, "calendar_view_page_limit", 2)
        for hour in (9, 11, 13):
            service.create_time_block(
                owner.id, _create(f"B{hour}", utc(2023, 6, 15, hour), utc(2023, 6, 15, hour + 1))
            )

        view = service.get_calendar_view(owner.id, CalendarView.DAY)
        assert view.paginated is True
        assert view.total == 3
        assert [b.title for b in view.time_blocks] == ["B9", "B11"]


class TestCacheInvalidation:
    def test_view_is_served_from_cache_until_a_write(self, service, owner, cache, make_block):
        empty = service.get_calendar_view(owner.id, CalendarView.WEEK)
        assert empty.total == 0
        key = CalendarCache.calendar_view_key(owner.id, CalendarView.WEEK, date(2023, 6, 15))
        assert cache.get(key) is not None

        # Written behind the service's back, so the cached view stays stale
        make_block(owner, utc(2023, 6, 14, 9), utc(2023, 6, 14, 10))
        assert service.get_calendar_view(owner.id, CalendarView.WEEK).total == 0

        service.create_time_block(owner.id, _create())
        assert cache.get(key) is None
        assert service.get_calendar_view(owner.id, CalendarView.WEEK).total == 2

    def test_update_and_delete_invalidate(self, service, owner, cache):
        block = service.create_time_block(owner.id, _create())
        key = CalendarCache.calendar_view_key(owner.id, CalendarView.DAY, date(2023, 6, 15))

        service.get_calendar_view(owner.id, CalendarView.DAY)
        service.update_time_block(block.id, owner.id, TimeBlockUpdate(title="Renamed"))
        assert cache.get(key) is None
        assert service.get_calendar_view(owner.id, CalendarView.DAY).time_blocks[0].title == "Renamed"

        service.delete_time_block(block.id, owner.id)
        assert cache.get(key) is None
        assert service.get_calendar_view(owner.id, CalendarView.DAY).total == 0

    def test_failed_write_keeps_cache(self, service, owner, cache):
        service.create_time_block(owner.id, _create())
        service.get_calendar_view(owner.id, CalendarView.DAY)
        key = CalendarCache.calendar_view_key(owner.id, CalendarView.DAY, date(2023, 6, 15))

        with pytest.raises(SchedulingConflictException):
            service.create_time_block(owner.id, _create())
        assert cache.get(key) is not None

    def test_write_during_view_read_is_not_cached_stale(
        self, service, owner, cache, clock, session_factory
    ):
        original = TimeBlockRepository.find_by_owners_in_range

        def read_then_concurrent_write(repository, *args, **kwargs):
            rows = original(repository, *args, **kwargs)
            writer_session = session_factory()
            try:
                TimeBlockService(writer_session, cache, clock=clock).create_time_block(owner.id, _create())
            finally:
                writer_session.close()
            return rows

        with patch.object(TimeBlockRepository, "find_by_owners_in_range", read_then_concurrent_write):
            assert service.get_calendar_view(owner.id, CalendarView.WEEK).total == 0

        assert service.get_calendar_view(owner.id, CalendarView.WEEK).total == 1

    def test_other_owners_cache_survives(self, service, owner, make_user, cache):
        other = make_user("Grace")
        service.get_calendar_view(other.id, CalendarView.DAY)
        key = CalendarCache.calendar_view_key(other.id, CalendarView.DAY, date(2023, 6, 15))

        service.create_time_block(owner.id, _create())
        assert cache.get(key) is not None


def test_service_without_cache_still_works(db, make_user, clock):
    owner = make_user()
    service = TimeBlockService(db, clock=clock)
    service.create_time_block(owner.id, _create())
    assert service.get_calendar_view(owner.id, CalendarView.DAY).total == 1


def test_block_spanning_midnight_counts_in_both_days(db, make_user, clock):
    owner = make_user()
    service = TimeBlockService(db, clock=clock)
    service.create_time_block(
        owner.id, _create("Night", utc(2023, 6, 15, 23), utc(2023, 6, 15, 23) + timedelta(hours=2))
    )
    assert service.get_calendar_view(owner.id, CalendarView.DAY, date(2023, 6, 16)).total == 1
