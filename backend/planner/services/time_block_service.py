# backend/planner/services/time_block_service.py
"""
Time Block Service for the planner

Handles the time block lifecycle and the single-user calendar view:

- create/update run overlap detection and the write in one transaction,
  behind a row lock on the owner, so concurrent writers for the same owner
  are serialised and cannot both commit overlapping blocks
- update/delete honour optimistic concurrency through the version column
- every committed write drops the owner's cached calendars

Business errors (invalid range, conflict, not found, stale version) are
raised to the caller untouched and never retried here.
"""

from datetime import date, datetime
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.enums import CalendarView
from ..core.exceptions import (
    ConcurrencyConflictException,
    NotFoundException,
    OwnersNotFoundException,
    ValidationException,
)
from ..models.time_block import TimeBlock
from ..repositories import RepositoryFactory
from ..schemas.calendar import (
    BlockPosition,
    CalendarViewResponse,
    CalendarWindowResponse,
    PaginationOptions,
    PositionedTimeBlock,
)
from ..schemas.time_block import TimeBlockCreate, TimeBlockRead, TimeBlockUpdate
from ..utils.calendar_window import CalendarWindow, compute_window, window_bounds
from .base import BaseService
from .calendar_cache import CalendarCache
from .conflict_detector import ConflictDetector
from .pagination import paginate

if TYPE_CHECKING:
    from ..repositories.time_block_repository import TimeBlockRepository
    from ..repositories.user_repository import UserRepository
    from .cache_service import CacheService

logger = logging.getLogger(__name__)

DAY_COLUMN_HEIGHT_PX = 1000
MINUTES_PER_DAY = 24 * 60
WEEK_COLUMN_WIDTH_PCT = 14.28

REQUIRED_FIELDS = ("title", "start_time", "end_time")


def check_expected_version(entity: Any, entity_name: str, expected_version: Optional[int]) -> None:
    """Reject a write whose caller saw an older version of the row."""
    if expected_version is not None and entity.version != expected_version:
        raise ConcurrencyConflictException(
            entity_name,
            entity.id,
            expected_version=expected_version,
            actual_version=entity.version,
        )


class TimeBlockService(BaseService):
    """
    Service layer for time block operations.

    Owns create/update/delete of blocks, the per-view calendar listing and
    invalidation of the owner's cached calendars.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional["CacheService"] = None,
        clock: Clock = system_clock,
        repository: Optional["TimeBlockRepository"] = None,
        user_repository: Optional["UserRepository"] = None,
        conflict_detector: Optional[ConflictDetector] = None,
    ):
        super().__init__(db, cache)
        self.clock = clock
        self.repository = repository or RepositoryFactory.create_time_block_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.conflict_detector = conflict_detector or ConflictDetector(db, self.repository)
        self.calendar_cache = CalendarCache(cache) if cache else None

    # Writes

    @BaseService.measure_operation("create_time_block")
    def create_time_block(self, owner_id: str, data: TimeBlockCreate) -> TimeBlock:
        """
        Schedule a new block for ``owner_id``.

        Raises:
            InvalidRangeException: start_time >= end_time
            OwnersNotFoundException: Owner does not exist
            SchedulingConflictException: Range overlaps an existing block
        """
        ConflictDetector.validate_range(data.start_time, data.end_time)

        with self.transaction():
            self._lock_owner(owner_id)
            self.conflict_detector.ensure_no_conflicts(owner_id, data.start_time, data.end_time)
            block = self.repository.create(owner_id=owner_id, **data.model_dump())

        self.logger.info(f"Created time block {block.id} for owner {owner_id}")
        self._invalidate_owner(owner_id)
        return block

    @BaseService.measure_operation("update_time_block")
    def update_time_block(self, time_block_id: str, owner_id: str, data: TimeBlockUpdate) -> TimeBlock:
        """
        Apply a partial update.

        Raises:
            NotFoundException: Block does not exist or belongs to someone else
            InvalidRangeException: Resulting start_time >= end_time
            SchedulingConflictException: Resulting range overlaps another block
            ConcurrencyConflictException: expected_version is stale, or a
                concurrent writer committed first
        """
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        expected_version = changes.pop("expected_version", None)
        for name in REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise ValidationException(f"{name} cannot be null", code="REQUIRED_FIELD")

        with self.transaction():
            self._lock_owner(owner_id)
            block = self._get_owned(time_block_id, owner_id)
            check_expected_version(block, "TimeBlock", expected_version)

            new_start = changes.get("start_time", block.start_time)
            new_end = changes.get("end_time", block.end_time)
            self.conflict_detector.ensure_no_conflicts(owner_id, new_start, new_end, exclude_id=block.id)

            block = self.repository.apply_changes(block, **changes)

        self.logger.info(f"Updated time block {block.id} to version {block.version}")
        self._invalidate_owner(owner_id)
        return block

    @BaseService.measure_operation("delete_time_block")
    def delete_time_block(
        self, time_block_id: str, owner_id: str, expected_version: Optional[int] = None
    ) -> None:
        """
        Raises:
            NotFoundException: Block does not exist or belongs to someone else
            ConcurrencyConflictException: expected_version is stale
        """
        with self.transaction():
            block = self._get_owned(time_block_id, owner_id)
            check_expected_version(block, "TimeBlock", expected_version)
            self.repository.delete_entity(block)

        self.logger.info(f"Deleted time block {time_block_id} of owner {owner_id}")
        self._invalidate_owner(owner_id)

    # Reads

    def get_time_block(self, time_block_id: str, owner_id: str) -> TimeBlock:
        return self._get_owned(time_block_id, owner_id)

    @BaseService.measure_operation("list_time_blocks")
    def list_time_blocks(
        self,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TimeBlock]:
        """Owner's blocks touching [start, end], ascending by start time."""
        return self.repository.find_by_owners_in_range([owner_id], start, end)

    @BaseService.measure_operation("get_calendar_view")
    def get_calendar_view(
        self,
        owner_id: str,
        view: CalendarView,
        reference_date: Optional[date] = None,
    ) -> CalendarViewResponse:
        """
        Blocks in the day/week/month window around ``reference_date``
        (today by default), each with client layout hints.

        Windows holding more than ``calendar_view_page_limit`` blocks return
        only the first page; ``total`` still counts them all.
        """
        view = CalendarView(view)
        reference_date = reference_date or self.clock.today()

        cache_key = CalendarCache.calendar_view_key(owner_id, view, reference_date)
        generations = None
        if self.calendar_cache:
            cached = self.calendar_cache.get(cache_key)
            if cached is not None:
                return CalendarViewResponse.model_validate(cached)
            generations = self.calendar_cache.generations([owner_id])

        window = compute_window(view, reference_date)
        range_start, range_end = window_bounds(window)
        blocks = self.list_time_blocks(owner_id, range_start, range_end)
        total = len(blocks)

        paginated = total > settings.calendar_view_page_limit
        if paginated:
            page = paginate(
                blocks, PaginationOptions(page=1, limit=settings.calendar_view_page_limit)
            )
            blocks = page.items

        response = CalendarViewResponse(
            window=CalendarWindowResponse(
                view=window.view,
                reference_date=window.reference_date,
                start_date=window.start_date,
                end_date=window.end_date,
            ),
            time_blocks=[self._position_block(block, window) for block in blocks],
            total=total,
            paginated=paginated,
        )

        if self.calendar_cache:
            self.calendar_cache.set(cache_key, response.model_dump(mode="json"), generations)
        return response

    # Helpers

    def _lock_owner(self, owner_id: str) -> None:
        if self.user_repository.lock_for_update(owner_id) is None:
            raise OwnersNotFoundException([owner_id])

    def _get_owned(self, time_block_id: str, owner_id: str) -> TimeBlock:
        block = self.repository.get_for_owner(time_block_id, owner_id)
        if block is None:
            raise NotFoundException(
                f"Time block {time_block_id} not found",
                code="TIME_BLOCK_NOT_FOUND",
                details={"id": time_block_id},
            )
        return block

    def _invalidate_owner(self, owner_id: str) -> None:
        if self.calendar_cache:
            self.calendar_cache.invalidate_owner(owner_id)

    @staticmethod
    def _position_block(block: TimeBlock, window: CalendarWindow) -> PositionedTimeBlock:
        base = TimeBlockRead.model_validate(block).model_dump()
        start = block.start_time
        position = BlockPosition()

        if window.view is CalendarView.MONTH:
            position.display_date = start.date()
        else:
            minutes = start.hour * 60 + start.minute
            position.top = round(minutes / MINUTES_PER_DAY * DAY_COLUMN_HEIGHT_PX, 2)
            height = block.duration_minutes / MINUTES_PER_DAY * DAY_COLUMN_HEIGHT_PX
            position.height = round(min(height, DAY_COLUMN_HEIGHT_PX - position.top), 2)
            if window.view is CalendarView.WEEK:
                # Sunday is column 0
                column = (start.weekday() + 1) % 7
                position.left = round(column * WEEK_COLUMN_WIDTH_PCT, 2)
                position.width = WEEK_COLUMN_WIDTH_PCT

        return PositionedTimeBlock(**base, position=position)
