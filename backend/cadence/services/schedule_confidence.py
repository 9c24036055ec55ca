"""Schedule confidence thresholds.

Each risk posture starts at a base confidence and climbs by ``step`` points
per percent of time elapsed towards a target date. Three target dates give
three thresholds: latest -> behind, most likely -> on, earliest -> ahead.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.core.exceptions import NotFoundError
from cadence.models.goal import Goal, GoalCheckIn
from cadence.schemas.goal import DEFAULT_INITIAL_CONFIDENCE
from cadence.utils.dates import as_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Posture:
    step: float
    start: float


POSTURES: dict[str, Posture] = {
    "commit": Posture(step=0.2, start=80),
    "stretch": Posture(step=0.5, start=50),
    "transform": Posture(step=0.8, start=20),
}


@dataclass(frozen=True)
class ScheduleThresholds:
    behind_schedule_if_confidence_below: float
    on_schedule_if_confidence_above: float
    ahead_of_schedule_if_confidence_above: float

    def rounded(self) -> dict[str, int]:
        return {
            "behind_schedule_if_confidence_below": round(self.behind_schedule_if_confidence_below),
            "on_schedule_if_confidence_above": round(self.on_schedule_if_confidence_above),
            "ahead_of_schedule_if_confidence_above": round(self.ahead_of_schedule_if_confidence_above),
        }


class ScheduleStatus(str, enum.Enum):
    AHEAD = "ahead"
    ON_SCHEDULE = "on_schedule"
    AT_RISK = "at_risk"
    BEHIND = "behind"
    NOT_APPLICABLE = "not_applicable"


def posture_for(initial_confidence: str | None) -> Posture:
    posture = POSTURES.get(initial_confidence or "")
    if posture is None:
        if initial_confidence:
            logger.warning("Unknown initial_confidence %r, treating as stretch", initial_confidence)
        return POSTURES[DEFAULT_INITIAL_CONFIDENCE]
    return posture


def time_lapsed_percent(started: date, target: date, check: date) -> float:
    total_days = (target - started).days
    if total_days <= 0:
        return 0.0
    return (check - started).days / total_days * 100


def compute_thresholds(
    initial_confidence: str | None,
    earliest_target_date: date | None,
    latest_target_date: date | None,
    most_likely_target_date: date | None,
    started_at: date | datetime | None,
    progress_check_date: date | datetime | None,
) -> ScheduleThresholds | None:
    if most_likely_target_date is None or started_at is None or progress_check_date is None:
        return None

    posture = posture_for(initial_confidence)
    started = as_date(started_at)
    check = as_date(progress_check_date)
    earliest = earliest_target_date or most_likely_target_date
    latest = latest_target_date or most_likely_target_date

    def threshold(target: date) -> float:
        return min(100.0, posture.start + time_lapsed_percent(started, target, check) * posture.step)

    return ScheduleThresholds(
        behind_schedule_if_confidence_below=threshold(latest),
        on_schedule_if_confidence_above=threshold(most_likely_target_date),
        ahead_of_schedule_if_confidence_above=threshold(earliest),
    )


def thresholds_for_goal(goal: Any, check_date: date | datetime | None) -> ScheduleThresholds | None:
    return compute_thresholds(
        goal.initial_confidence,
        goal.earliest_target_date,
        goal.latest_target_date,
        goal.most_likely_target_date,
        goal.started_at,
        check_date,
    )


def classify_confidence(thresholds: ScheduleThresholds | None, confidence: float | None) -> ScheduleStatus:
    if thresholds is None or confidence is None:
        return ScheduleStatus.NOT_APPLICABLE
    if confidence > thresholds.ahead_of_schedule_if_confidence_above:
        return ScheduleStatus.AHEAD
    if confidence > thresholds.on_schedule_if_confidence_above:
        return ScheduleStatus.ON_SCHEDULE
    if confidence >= thresholds.behind_schedule_if_confidence_below:
        return ScheduleStatus.AT_RISK
    return ScheduleStatus.BEHIND


class GoalScheduleService:
    """Classifies a goal's latest check-in against its schedule."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def latest_check_in(self, goal_id: str) -> GoalCheckIn | None:
        result = await self.session.execute(
            select(GoalCheckIn)
            .where(GoalCheckIn.goal_id == goal_id)
            .order_by(GoalCheckIn.check_in_week_start.desc(), GoalCheckIn.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def status_for(self, goal: Goal | str) -> ScheduleStatus:
        if isinstance(goal, str):
            found = await self.session.get(Goal, goal)
            if found is None:
                raise NotFoundError(f"Goal {goal} not found")
            goal = found

        check_in = await self.latest_check_in(goal.id)
        if check_in is None:
            return ScheduleStatus.NOT_APPLICABLE
        thresholds = thresholds_for_goal(goal, check_in.check_in_week_start)
        return classify_confidence(thresholds, check_in.confidence_percentage)
