# backend/planner/repositories/factory.py
"""
One place that knows how to build each planner repository from a session.

Services ask the factory instead of instantiating repositories themselves,
so tests can patch a single constructor.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .time_block_repository import TimeBlockRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    @staticmethod
    def create_time_block_repository(db: Session) -> "TimeBlockRepository":
        from .time_block_repository import TimeBlockRepository

        return TimeBlockRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        """User lookups plus the per-owner write lock."""
        from .user_repository import UserRepository

        return UserRepository(db)
