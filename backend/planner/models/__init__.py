"""
Database models for the planner.

This module exports all SQLAlchemy models used in the application:
- User: calendar owners
- TimeBlock: scheduled, non-overlapping blocks per owner
- AvailabilityWindow: declared availability states per owner
"""

from .availability import AvailabilityWindow
from .time_block import TimeBlock
from .user import User

__all__ = ["AvailabilityWindow", "TimeBlock", "User"]
