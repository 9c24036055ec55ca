"""Pydantic schemas."""

from cadence.schemas.base import BaseSchema, TimestampSchema
from cadence.schemas.goal import (
    BulkCheckInEntry,
    GoalCheckInResponse,
    GoalCheckInWrite,
    GoalCreateRequest,
    GoalLinkResponse,
    GoalOwner,
    GoalResponse,
    IndividualOwner,
    OrgUnitOwner,
)

__all__ = [
    "BaseSchema",
    "TimestampSchema",
    "BulkCheckInEntry",
    "GoalCheckInResponse",
    "GoalCheckInWrite",
    "GoalCreateRequest",
    "GoalLinkResponse",
    "GoalOwner",
    "GoalResponse",
    "IndividualOwner",
    "OrgUnitOwner",
]
