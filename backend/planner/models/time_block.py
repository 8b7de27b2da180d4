# backend/planner/models/time_block.py
"""
Time block model.

A time block is a scheduled, half-open [start_time, end_time) interval owned
by one user. Blocks of the same owner must never overlap; this is enforced
by ConflictDetector inside the write transaction.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .types import IntervalMixin


class TimeBlock(IntervalMixin, Base):
    """Scheduled block of time on a user's calendar."""

    __tablename__ = "time_blocks"

    owner_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=True)
    recurrence_pattern = Column(String(255), nullable=True)
    task_id = Column(String(64), nullable=True)
    version = Column(Integer, nullable=False)

    owner = relationship("User", back_populates="time_blocks")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_time_blocks_valid_range"),
        Index("idx_time_blocks_owner_range", "owner_id", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return f"<TimeBlock {self.title} {self.start_time}-{self.end_time}>"
