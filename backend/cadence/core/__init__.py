"""Core module initialization."""

from cadence.core.config import settings
from cadence.core.database import engine, get_db, session_scope
from cadence.core.exceptions import (
    CycleDetectedError,
    ForbiddenError,
    GoalGraphError,
    InvalidDateError,
    NotFoundError,
    ValidationFailedError,
)

__all__ = [
    "settings",
    "engine",
    "get_db",
    "session_scope",
    "GoalGraphError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationFailedError",
    "InvalidDateError",
    "CycleDetectedError",
]
