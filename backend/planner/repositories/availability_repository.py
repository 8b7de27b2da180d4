# backend/planner/repositories/availability_repository.py
"""
Availability Repository for the planner

Availability windows are never checked for overlap, so this repository only
adds the owner-scoped listing used by the availability service.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.availability import AvailabilityWindow
from .interval_repository import IntervalRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(IntervalRepository[AvailabilityWindow]):
    """Repository for availability window data access."""

    def __init__(self, db: Session):
        super().__init__(db, AvailabilityWindow)

    def list_for_owner(
        self,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[AvailabilityWindow]:
        return self.find_by_owners_in_range([owner_id], start, end)
