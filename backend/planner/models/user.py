# backend/planner/models/user.py
"""
User model for the planner.

Only the fields the calendar engine needs: identity, display name and the
user's IANA timezone. Authentication lives outside this service.
"""

import logging

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import TimestampMixin

logger = logging.getLogger(__name__)


class User(TimestampMixin, Base):
    """
    Owner of time blocks and availability windows.

    Relationships:
        time_blocks: One-to-many with TimeBlock (cascade delete)
        availability: One-to-many with AvailabilityWindow (cascade delete)
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    timezone = Column(String(50), nullable=False, default="UTC")

    time_blocks = relationship(
        "TimeBlock",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    availability = relationship(
        "AvailabilityWindow",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
