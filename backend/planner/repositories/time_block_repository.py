# backend/planner/repositories/time_block_repository.py
"""
TimeBlock Repository for the planner

Data access for scheduled time blocks. Services own the transaction; this
repository only flushes.
"""

import logging

from sqlalchemy.orm import Session

from ..models.time_block import TimeBlock
from .interval_repository import IntervalRepository

logger = logging.getLogger(__name__)


class TimeBlockRepository(IntervalRepository[TimeBlock]):
    """Repository for time block queries and writes."""

    def __init__(self, db: Session):
        super().__init__(db, TimeBlock)
