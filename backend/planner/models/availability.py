# backend/planner/models/availability.py
"""
Availability models for the planner.

Classes:
    AvailabilityWindow: A user's declared state (available/busy/away/offline)
        over a time range. Windows may overlap; the latest by start time wins
        when a client renders them.
"""

from sqlalchemy import CheckConstraint, Column, Enum as SAEnum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..core.enums import AvailabilityStatus
from ..database import Base
from .types import IntervalMixin


class AvailabilityWindow(IntervalMixin, Base):
    """User availability over a time range"""

    __tablename__ = "user_availability"

    owner_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        SAEnum(AvailabilityStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
        default=AvailabilityStatus.AVAILABLE,
    )
    note = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)

    owner = relationship("User", back_populates="availability")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_user_availability_valid_range"),
        Index("idx_user_availability_owner_range", "owner_id", "start_time", "end_time"),
    )

    @property
    def title(self) -> str:
        return self.status.value if isinstance(self.status, AvailabilityStatus) else str(self.status)

    def __repr__(self) -> str:
        return f"<AvailabilityWindow {self.status} {self.start_time}-{self.end_time}>"
