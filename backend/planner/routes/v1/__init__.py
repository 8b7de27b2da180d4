# backend/planner/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
All new endpoints should be added here.
"""

from . import availability, calendar, team_calendar, time_blocks

__all__ = [
    "availability",
    "calendar",
    "team_calendar",
    "time_blocks",
]
