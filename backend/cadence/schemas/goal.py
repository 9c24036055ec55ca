"""Goal graph schemas (Pydantic v2)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, field_validator

from cadence.schemas.base import BaseSchema, TimestampSchema


GoalType = Literal["inspirational_objective", "quantitative_key_result", "qualitative_key_result"]
PrivacyLevel = Literal[
    "only_creator",
    "only_creator_and_owner",
    "only_creator_owner_and_managers",
    "everyone_in_company",
]
InitialConfidence = Literal["commit", "stretch", "transform"]
OwnerType = Literal["individual", "org_unit"]

GOAL_TYPES: tuple[str, ...] = (
    "inspirational_objective",
    "quantitative_key_result",
    "qualitative_key_result",
)
KEY_RESULT_TYPES: frozenset[str] = frozenset({"quantitative_key_result", "qualitative_key_result"})
PRIVACY_LEVELS: tuple[str, ...] = (
    "only_creator",
    "only_creator_and_owner",
    "only_creator_owner_and_managers",
    "everyone_in_company",
)
INITIAL_CONFIDENCES: tuple[str, ...] = ("commit", "stretch", "transform")
DEFAULT_INITIAL_CONFIDENCE = "stretch"


# ---------------------------------------------------------------------------
# Owner (tagged union)
# ---------------------------------------------------------------------------


class IndividualOwner(BaseSchema):
    kind: Literal["individual"] = "individual"
    teammate_id: str

    @property
    def owner_id(self) -> str:
        return self.teammate_id


class OrgUnitOwner(BaseSchema):
    kind: Literal["org_unit"] = "org_unit"
    org_unit_id: str

    @property
    def owner_id(self) -> str:
        return self.org_unit_id


GoalOwner = Annotated[Union[IndividualOwner, OrgUnitOwner], Field(discriminator="kind")]

_owner_adapter: TypeAdapter[GoalOwner] = TypeAdapter(GoalOwner)


def owner_from_columns(owner_type: str | None, owner_id: str | None) -> IndividualOwner | OrgUnitOwner | None:
    """Rebuild the owner union from its stored discriminant + id."""
    if not owner_type or not owner_id:
        return None
    if owner_type == "individual":
        return IndividualOwner(teammate_id=owner_id)
    if owner_type == "org_unit":
        return OrgUnitOwner(org_unit_id=owner_id)
    raise ValueError(f"'{owner_type}' is not a valid owner_type")


def parse_owner(value: Any) -> IndividualOwner | OrgUnitOwner:
    return _owner_adapter.validate_python(value)


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


class GoalCreateRequest(BaseSchema):
    organization_id: str
    title: str = Field(min_length=1)
    description: str | None = None

    goal_type: GoalType
    owner: GoalOwner
    creator_id: str
    privacy_level: PrivacyLevel = "only_creator_owner_and_managers"

    earliest_target_date: date | None = None
    most_likely_target_date: date | None = None
    latest_target_date: date | None = None

    initial_confidence: InitialConfidence = DEFAULT_INITIAL_CONFIDENCE


class GoalResponse(TimestampSchema):
    id: str
    organization_id: str
    title: str
    description: str | None
    goal_type: GoalType
    owner_type: OwnerType
    owner_id: str
    creator_id: str
    privacy_level: PrivacyLevel

    started_at: datetime | None
    completed_at: datetime | None
    deleted_at: datetime | None

    earliest_target_date: date | None
    most_likely_target_date: date | None
    latest_target_date: date | None

    initial_confidence: InitialConfidence


class GoalLinkResponse(BaseSchema):
    id: str
    parent_goal_id: str
    child_goal_id: str
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="extra_metadata")
    created_at: datetime


# ---------------------------------------------------------------------------
# Check-ins
# ---------------------------------------------------------------------------


class GoalCheckInWrite(BaseSchema):
    """Validated values for a single check-in upsert."""

    goal_id: str
    check_in_week_start: date
    confidence_percentage: int = Field(ge=0, le=100)
    confidence_reason: str | None = None
    reporter_id: str

    @field_validator("check_in_week_start")
    @classmethod
    def must_be_monday(cls, v: date) -> date:
        if v.weekday() != 0:
            raise ValueError("check_in_week_start must be a Monday")
        return v

    @field_validator("confidence_reason")
    @classmethod
    def blank_reason_is_none(cls, v: str | None) -> str | None:
        return v or None


class GoalCheckInResponse(BaseSchema):
    id: str
    goal_id: str
    check_in_week_start: date
    confidence_percentage: int
    confidence_reason: str | None
    reporter_id: str
    updated_at: datetime


class BulkCheckInEntry(BaseSchema):
    """One row of a bulk check-in form; blank strings mean "not given"."""

    confidence_percentage: int | None = None
    confidence_reason: str | None = None
    most_likely_target_date: str | date | None = None

    @field_validator("confidence_percentage", mode="before")
    @classmethod
    def blank_confidence_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("confidence_reason", "most_likely_target_date", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_blank(self) -> bool:
        return self.confidence_percentage is None and not self.confidence_reason
