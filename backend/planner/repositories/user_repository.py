# backend/planner/repositories/user_repository.py
"""
User Repository for the planner

The user directory consumed by the calendar engine: existence checks for
aggregation and the per-owner row lock that serialises time block writes.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.email == email.lower()).first()
        except SQLAlchemyError as e:
            raise self._translate_error(e, "retrieve") from e

    def find_existing_ids(self, ids: Iterable[str]) -> List[str]:
        wanted = list(ids)
        if not wanted:
            return []
        try:
            rows = self.db.query(User.id).filter(User.id.in_(wanted)).all()
        except SQLAlchemyError as e:
            raise self._translate_error(e, "check existence of") from e
        return [row[0] for row in rows]

    def find_missing(self, ids: Iterable[str]) -> List[str]:
        """
        Return the ids that do not resolve to a user, in request order.

        Args:
            ids: Candidate user ids (duplicates allowed)

        Returns:
            Missing ids without duplicates; empty when every id exists
        """
        wanted = list(dict.fromkeys(ids))
        existing = set(self.find_existing_ids(wanted))
        return [user_id for user_id in wanted if user_id not in existing]

    def lock_for_update(self, user_id: str) -> Optional[User]:
        """
        Take a row lock on the owner for the rest of the transaction.

        Writers for the same owner queue behind each other, so overlap
        detection and the write that follows it see a consistent state.
        Back-ends without row locks (SQLite) ignore FOR UPDATE.
        """
        try:
            return self.db.query(User).filter(User.id == user_id).with_for_update().first()
        except SQLAlchemyError as e:
            raise self._translate_error(e, "lock") from e
