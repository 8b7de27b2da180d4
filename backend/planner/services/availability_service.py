# backend/planner/services/availability_service.py
"""
Availability Service for the planner

Availability windows declare a user's state over a range. They are not
checked for overlap; only range validity, ownership and version are
enforced. Every committed write drops the owner's cached calendars.
"""

from datetime import datetime
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, OwnersNotFoundException, ValidationException
from ..models.availability import AvailabilityWindow
from ..repositories import RepositoryFactory
from ..schemas.availability import AvailabilityCreate, AvailabilityUpdate
from .base import BaseService
from .calendar_cache import CalendarCache
from .conflict_detector import ConflictDetector
from .time_block_service import check_expected_version

if TYPE_CHECKING:
    from ..repositories.availability_repository import AvailabilityRepository
    from ..repositories.user_repository import UserRepository
    from .cache_service import CacheService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Service layer for availability windows."""

    def __init__(
        self,
        db: Session,
        cache: Optional["CacheService"] = None,
        repository: Optional["AvailabilityRepository"] = None,
        user_repository: Optional["UserRepository"] = None,
    ):
        super().__init__(db, cache)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.calendar_cache = CalendarCache(cache) if cache else None

    @BaseService.measure_operation("set_availability")
    def set_availability(self, owner_id: str, data: AvailabilityCreate) -> AvailabilityWindow:
        ConflictDetector.validate_range(data.start_time, data.end_time)

        with self.transaction():
            if self.user_repository.get_by_id(owner_id) is None:
                raise OwnersNotFoundException([owner_id])
            window = self.repository.create(owner_id=owner_id, **data.model_dump())

        self._invalidate_owner(owner_id)
        return window

    @BaseService.measure_operation("update_availability")
    def update_availability(
        self, availability_id: str, owner_id: str, data: AvailabilityUpdate
    ) -> AvailabilityWindow:
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        expected_version = changes.pop("expected_version", None)
        for name in ("start_time", "end_time", "status"):
            if name in changes and changes[name] is None:
                raise ValidationException(f"{name} cannot be null", code="REQUIRED_FIELD")

        with self.transaction():
            window = self._get_owned(availability_id, owner_id)
            check_expected_version(window, "AvailabilityWindow", expected_version)
            ConflictDetector.validate_range(
                changes.get("start_time", window.start_time),
                changes.get("end_time", window.end_time),
            )
            window = self.repository.apply_changes(window, **changes)

        self._invalidate_owner(owner_id)
        return window

    @BaseService.measure_operation("delete_availability")
    def delete_availability(
        self, availability_id: str, owner_id: str, expected_version: Optional[int] = None
    ) -> None:
        with self.transaction():
            window = self._get_owned(availability_id, owner_id)
            check_expected_version(window, "AvailabilityWindow", expected_version)
            self.repository.delete_entity(window)

        self._invalidate_owner(owner_id)

    def list_availability(
        self,
        owner_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[AvailabilityWindow]:
        """Owner's windows touching [start, end], ascending by start time."""
        return self.repository.list_for_owner(owner_id, start, end)

    def _get_owned(self, availability_id: str, owner_id: str) -> AvailabilityWindow:
        window = self.repository.get_for_owner(availability_id, owner_id)
        if window is None:
            raise NotFoundException(
                f"Availability window {availability_id} not found",
                code="AVAILABILITY_NOT_FOUND",
                details={"id": availability_id},
            )
        return window

    def _invalidate_owner(self, owner_id: str) -> None:
        if self.calendar_cache:
            self.calendar_cache.invalidate_owner(owner_id)
