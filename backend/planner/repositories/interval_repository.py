# backend/planner/repositories/interval_repository.py
"""
Range queries shared by every time-bounded record.

Two different notions of "in range" are used on purpose:

- find_overlapping uses the half-open test (start < end AND other_start <
  end) so blocks that merely touch at a boundary do not collide.
- find_by_owners_in_range uses inclusive overlap (end >= range_start AND
  start <= range_end), the calendar-listing filter, where either bound may
  be omitted.
"""

from datetime import datetime
from typing import Iterable, List, Optional, TypeVar

from sqlalchemy.orm import Session

from ..models.types import ensure_utc
from .base_repository import BaseRepository

T = TypeVar("T")


class IntervalRepository(BaseRepository[T]):
    """Base for repositories over models built on IntervalMixin."""

    def __init__(self, db: Session, model: type):
        super().__init__(db, model)

    def get_for_owner(self, id: str, owner_id: str) -> Optional[T]:
        """Fetch a record only when it belongs to the given owner."""
        entity = self.get_by_id(id)
        if entity is None or entity.owner_id != owner_id:
            return None
        return entity

    def find_overlapping(
        self,
        owner_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[T]:
        """
        Records of one owner whose [start, end) intersects [start_time, end_time).

        Args:
            owner_id: Owner to check
            start_time: Candidate start (inclusive)
            end_time: Candidate end (exclusive)
            exclude_id: Record to leave out, typically the one being updated

        Returns:
            Overlapping records ordered by start time
        """
        model = self.model
        query = self._build_query().filter(
            model.owner_id == owner_id,
            model.start_time < ensure_utc(end_time),
            model.end_time > ensure_utc(start_time),
        )
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return self._execute_query(query.order_by(model.start_time, model.id), "find overlapping")

    def find_by_owners_in_range(
        self,
        owner_ids: Iterable[str],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[T]:
        """All records of the given owners touching [start, end], ordered by start time."""
        ids = list(owner_ids)
        if not ids:
            return []

        model = self.model
        query = self._build_query().filter(model.owner_id.in_(ids))
        if start is not None:
            query = query.filter(model.end_time >= ensure_utc(start))
        if end is not None:
            query = query.filter(model.start_time <= ensure_utc(end))
        return self._execute_query(
            query.order_by(model.start_time, model.created_at, model.id), "find in range"
        )
