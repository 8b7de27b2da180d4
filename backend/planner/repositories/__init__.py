# backend/planner/repositories/__init__.py
"""
Repository Pattern Implementation for the planner

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IntervalRepository: Overlap and range queries shared by interval records
- TimeBlockRepository, AvailabilityRepository, UserRepository
- RepositoryFactory: Factory for creating repository instances

Usage:
    from planner.repositories import RepositoryFactory

    repository = RepositoryFactory.create_time_block_repository(db)
    conflicts = repository.find_overlapping(owner_id, start, end)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository, IRepository
from .factory import RepositoryFactory
from .interval_repository import IntervalRepository
from .time_block_repository import TimeBlockRepository
from .user_repository import UserRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "IRepository",
    "IntervalRepository",
    "RepositoryFactory",
    "TimeBlockRepository",
    "UserRepository",
]
