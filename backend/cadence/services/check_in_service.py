"""Weekly check-in recording.

One check-in per goal per ISO week. Recording also moves the goal's
most-likely target date (clamping the other two around it), starts the goal
on its first check-in and completes it at 0% or 100%.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from types import SimpleNamespace
from typing import Any

from pydantic import ValidationError
from sqlalchemy import and_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.core.config import settings
from cadence.core.exceptions import NotFoundError, ValidationFailedError
from cadence.models.base import utc_now
from cadence.models.goal import Goal, GoalCheckIn
from cadence.schemas.goal import GoalCheckInWrite
from cadence.services.confidence_moments import (
    ConfidenceMoment,
    ConfidenceMomentPublisher,
    LoggingMomentPublisher,
    is_moment,
    publish_safely,
)
from cadence.services.goal_validation import goal_errors
from cadence.utils.dates import parse_date
from cadence.utils.dates import week_start as monday_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckInResult:
    check_in: GoalCheckIn
    goal: Goal
    target_date_updated: bool
    moment: ConfidenceMoment | None = None


@dataclass(frozen=True)
class ClampedDates:
    earliest: date | None
    most_likely: date
    latest: date | None


def clamp_target_dates(*, earliest: date | None, most_likely: date, latest: date | None) -> ClampedDates:
    """Keep ``earliest <= most_likely < latest`` around a new most-likely date."""
    if earliest is not None and earliest > most_likely:
        earliest = most_likely
    if latest is not None and latest <= most_likely:
        latest = most_likely + timedelta(days=1)
    return ClampedDates(earliest=earliest, most_likely=most_likely, latest=latest)


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return messages


class CheckInService:
    """Records check-ins; callers own the outer transaction."""

    def __init__(self, session: AsyncSession, *, publisher: ConfidenceMomentPublisher | None = None):
        self.session = session
        self.publisher = publisher if publisher is not None else LoggingMomentPublisher()

    async def _get_goal(self, goal: Goal | str) -> Goal:
        if isinstance(goal, Goal):
            return goal
        found = await self.session.get(Goal, goal)
        if found is None:
            raise NotFoundError(f"Goal {goal} not found")
        return found

    async def latest_check_in_before(self, goal_id: str, week: date) -> GoalCheckIn | None:
        result = await self.session.execute(
            select(GoalCheckIn)
            .where(and_(GoalCheckIn.goal_id == goal_id, GoalCheckIn.check_in_week_start < week))
            .order_by(GoalCheckIn.check_in_week_start.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def check_in_for_week(self, goal_id: str, week: date) -> GoalCheckIn | None:
        result = await self.session.execute(
            select(GoalCheckIn).where(
                and_(GoalCheckIn.goal_id == goal_id, GoalCheckIn.check_in_week_start == week)
            )
        )
        return result.scalar_one_or_none()

    async def latest_check_in_outside(self, goal_id: str, week: date) -> GoalCheckIn | None:
        result = await self.session.execute(
            select(GoalCheckIn)
            .where(and_(GoalCheckIn.goal_id == goal_id, GoalCheckIn.check_in_week_start != week))
            .order_by(GoalCheckIn.check_in_week_start.desc(), GoalCheckIn.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _upsert(self, values: dict[str, Any]) -> GoalCheckIn:
        dialect = self.session.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

        stmt = insert(GoalCheckIn).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["goal_id", "check_in_week_start"],
            set_={
                "confidence_percentage": values["confidence_percentage"],
                "confidence_reason": values["confidence_reason"],
                "reporter_id": values["reporter_id"],
                # onupdate hooks do not fire for ON CONFLICT updates
                "updated_at": utc_now(),
            },
        ).returning(GoalCheckIn)

        res = await self.session.execute(stmt.execution_options(populate_existing=True))
        check_in = res.scalar_one()
        await self.session.flush()
        await self.session.refresh(check_in)
        return check_in

    async def record(
        self,
        *,
        goal: Goal | str,
        reporter_id: str,
        confidence_percentage: int | None = None,
        confidence_reason: str | None = None,
        most_likely_target_date: str | date | None = None,
        week_start: str | date | datetime | None = None,
    ) -> CheckInResult:
        goal = await self._get_goal(goal)

        week = monday_of(parse_date(week_start) if isinstance(week_start, str) else week_start)
        new_most_likely = parse_date(most_likely_target_date)
        reason = (confidence_reason or "").strip() or None

        errors: list[str] = []

        if confidence_percentage is None and reason is not None:
            current = await self.check_in_for_week(goal.id, week)
            source = current or await self.latest_check_in_outside(goal.id, week)
            confidence_percentage = (
                source.confidence_percentage if source is not None else settings.REASON_ONLY_DEFAULT_CONFIDENCE
            )
        if confidence_percentage is None:
            errors.append("Confidence percentage can't be blank")

        write: GoalCheckInWrite | None = None
        if confidence_percentage is not None:
            try:
                write = GoalCheckInWrite(
                    goal_id=goal.id,
                    check_in_week_start=week,
                    confidence_percentage=confidence_percentage,
                    confidence_reason=reason,
                    reporter_id=reporter_id,
                )
            except ValidationError as exc:
                errors.extend(_validation_messages(exc))

        clamped: ClampedDates | None = None
        if new_most_likely is not None:
            clamped = clamp_target_dates(
                earliest=goal.earliest_target_date,
                most_likely=new_most_likely,
                latest=goal.latest_target_date,
            )

        errors.extend(self._goal_errors_with(goal, clamped))
        if errors or write is None:
            raise ValidationFailedError(errors)

        previous = await self.latest_check_in_before(goal.id, week)
        target_date_updated = clamped is not None and clamped.most_likely != goal.most_likely_target_date

        async with self.session.begin_nested():
            if clamped is not None:
                goal.earliest_target_date = clamped.earliest
                goal.most_likely_target_date = clamped.most_likely
                goal.latest_target_date = clamped.latest

            check_in = await self._upsert(write.model_dump())

            now = utc_now()
            if goal.started_at is None:
                goal.started_at = now
            if check_in.confidence_percentage in (0, 100) and goal.completed_at is None:
                goal.completed_at = now
            await self.session.flush()

        logger.info(
            "Check-in recorded: goal=%s week=%s confidence=%s",
            goal.id,
            week,
            check_in.confidence_percentage,
        )

        moment = None
        previous_confidence = previous.confidence_percentage if previous is not None else None
        if is_moment(previous_confidence, check_in.confidence_percentage, settings.CHECK_IN_MOMENT_DELTA):
            moment = ConfidenceMoment(
                goal_id=goal.id,
                check_in_id=check_in.id,
                reporter_id=reporter_id,
                week_start=week,
                previous_confidence=previous_confidence,
                confidence=check_in.confidence_percentage,
            )
            await publish_safely(self.publisher, moment)

        return CheckInResult(
            check_in=check_in,
            goal=goal,
            target_date_updated=target_date_updated,
            moment=moment,
        )

    @staticmethod
    def _goal_errors_with(goal: Goal, clamped: ClampedDates | None) -> list[str]:
        if clamped is None:
            return goal_errors(goal)
        # validate the goal as it would be after the date change, without touching the instance
        proposed = SimpleNamespace(**goal.to_dict())
        proposed.earliest_target_date = clamped.earliest
        proposed.most_likely_target_date = clamped.most_likely
        proposed.latest_target_date = clamped.latest
        return goal_errors(proposed)
