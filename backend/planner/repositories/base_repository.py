# backend/planner/repositories/base_repository.py
"""
Generic data access shared by the planner repositories.

Repositories flush but never commit; the owning service decides when the
unit of work ends. Driver errors are translated before they leave this
layer:

- dropped connections, timeouts and pool exhaustion -> TransientStoreFailure
- version mismatches found at flush time -> ConcurrencyConflictException
- anything else -> RepositoryException
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.exceptions import (
    ConcurrencyConflictException,
    DomainException,
    RepositoryException,
    TransientStoreFailure,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


class IRepository(ABC, Generic[T]):
    """Minimal contract every planner repository offers."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        ...

    @abstractmethod
    def create(self, **kwargs: Any) -> T:
        ...

    @abstractmethod
    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        ...

    @abstractmethod
    def delete(self, id: str) -> bool:
        ...

    @abstractmethod
    def count(self, **kwargs: Any) -> int:
        ...


class BaseRepository(IRepository[T]):
    """
    SQLAlchemy-backed implementation of IRepository for a single model.

    Subclasses add their own queries on top of ``_build_query`` and run
    them through ``_execute_query`` so errors are translated the same way.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def _translate_error(self, exc: SQLAlchemyError, action: str) -> DomainException:
        name = self.model.__name__
        if isinstance(exc, TRANSIENT_ERRORS):
            self.logger.warning(f"Store unavailable during {action} on {name}: {exc}")
            return TransientStoreFailure(
                f"Store unavailable while trying to {action} {name}",
                details={"operation": action, "model": name},
            )
        self.logger.error(f"{action} on {name} failed: {exc}")
        if isinstance(exc, IntegrityError):
            return RepositoryException(f"Integrity constraint violated: {exc.orig}")
        return RepositoryException(f"Failed to {action} {name}: {exc}")

    def _version_conflict(self, entity: T) -> ConcurrencyConflictException:
        return ConcurrencyConflictException(self.model.__name__, getattr(entity, "id", "?"))

    def get_by_id(self, id: str) -> Optional[T]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise self._translate_error(e, "retrieve") from e

    def create(self, **kwargs: Any) -> T:
        """Add a row and flush so its id and version are populated."""
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            raise self._translate_error(e, "create") from e

    def update(self, id: str, **kwargs: Any) -> Optional[T]:
        """Patch the named attributes of row ``id``; None if it is gone."""
        entity = self.get_by_id(id)
        if entity is None:
            return None
        return self.apply_changes(entity, **kwargs)

    def apply_changes(self, entity: T, **kwargs: Any) -> T:
        """Set attributes on an already-loaded entity and flush; the version bumps here."""
        try:
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity
        except StaleDataError as e:
            raise self._version_conflict(entity) from e
        except SQLAlchemyError as e:
            raise self._translate_error(e, "update") from e

    def delete(self, id: str) -> bool:
        entity = self.get_by_id(id)
        if entity is None:
            return False
        self.delete_entity(entity)
        return True

    def delete_entity(self, entity: T) -> None:
        try:
            self.db.delete(entity)
            self.db.flush()
        except StaleDataError as e:
            raise self._version_conflict(entity) from e
        except SQLAlchemyError as e:
            raise self._translate_error(e, "delete") from e

    def count(self, **kwargs: Any) -> int:
        try:
            return self.db.query(self.model).filter_by(**kwargs).count()
        except SQLAlchemyError as e:
            raise self._translate_error(e, "count") from e

    def find_by(self, **kwargs: Any) -> List[T]:
        """Rows whose columns equal every keyword given."""
        try:
            return self.db.query(self.model).filter_by(**kwargs).all()
        except SQLAlchemyError as e:
            raise self._translate_error(e, "find") from e

    # Subclass helpers

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query, action: str = "query") -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise self._translate_error(e, action) from e
