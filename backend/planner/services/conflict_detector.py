# backend/planner/services/conflict_detector.py
"""
Conflict Detector Service for the planner

Decides whether a candidate [start, end) range collides with any of the
owner's existing time blocks. Touching boundaries are adjacent, not
overlapping. Conflicts are never resolved automatically: the caller gets
the colliding blocks back and must resubmit a free range.

The detector only reads. Callers that go on to write must run it inside the
same transaction as the write, after taking the owner lock, so that two
concurrent writers cannot both pass the check.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import InvalidRangeException, SchedulingConflictException
from ..models.time_block import TimeBlock
from ..models.types import ensure_utc
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.time_block_repository import TimeBlockRepository
from ..utils.intervals import is_valid_range, overlaps
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictDetector(BaseService):
    """Service for time block overlap detection."""

    def __init__(self, db: Session, repository: Optional[TimeBlockRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_time_block_repository(db)

    @staticmethod
    def validate_range(start_time: datetime, end_time: datetime) -> None:
        """Raise InvalidRangeException unless start_time < end_time."""
        if not is_valid_range(ensure_utc(start_time), ensure_utc(end_time)):
            raise InvalidRangeException(start_time, end_time)

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[TimeBlock]:
        """
        Existing blocks of ``owner_id`` overlapping [start_time, end_time).

        Args:
            owner_id: Owner whose calendar is checked
            start_time: Candidate start
            end_time: Candidate end
            exclude_id: Block to ignore (the one being updated)

        Returns:
            Conflicting blocks ordered by start time; empty when the range is free

        Raises:
            InvalidRangeException: If start_time >= end_time
        """
        self.validate_range(start_time, end_time)
        start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)

        candidates = self.repository.find_overlapping(owner_id, start_time, end_time, exclude_id)
        # Boundary-equal rows are adjacent, never conflicts
        return [
            block
            for block in candidates
            if block.id != exclude_id
            and overlaps(block.start_time, block.end_time, start_time, end_time)
        ]

    def ensure_no_conflicts(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[str] = None,
    ) -> None:
        """
        Raises:
            InvalidRangeException: If start_time >= end_time
            SchedulingConflictException: With the colliding blocks attached
        """
        conflicts = self.find_conflicts(owner_id, start_time, end_time, exclude_id)
        if conflicts:
            self.logger.warning(
                f"Scheduling conflict for owner {owner_id}: "
                f"{len(conflicts)} block(s) overlap {start_time.isoformat()} - {end_time.isoformat()}"
            )
            prometheus_metrics.inc_scheduling_conflict()
            raise SchedulingConflictException(conflicts)
