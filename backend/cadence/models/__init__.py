"""
Database Models
===============

SQLAlchemy models for the goal graph.
"""

from cadence.models.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    generate_uuid,
    utc_now,
)
from cadence.models.goal import Goal, GoalCheckIn, GoalLink

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "generate_uuid",
    "utc_now",
    "Goal",
    "GoalLink",
    "GoalCheckIn",
]
