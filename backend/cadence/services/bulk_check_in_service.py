"""Bulk check-ins: one form, many goals, one week."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.core.exceptions import GoalGraphError
from cadence.models.goal import Goal
from cadence.schemas.goal import BulkCheckInEntry
from cadence.services.check_in_service import CheckInService
from cadence.services.confidence_moments import ConfidenceMomentPublisher
from cadence.services.permissions import ViewPermission, can_view_goal

logger = logging.getLogger(__name__)

NO_PERMISSION_MESSAGE = "You don't have permission to check in on this goal"


@dataclass
class BulkCheckInResult:
    success_count: int = 0
    failure_count: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def fail(self, goal_id: str, message: str) -> None:
        self.failure_count += 1
        self.errors.append({"goal_id": goal_id, "message": message})


class BulkCheckInService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        can_view: ViewPermission = can_view_goal,
        publisher: ConfidenceMomentPublisher | None = None,
    ):
        self.session = session
        self.can_view = can_view
        self.recorder = CheckInService(session, publisher=publisher)

    async def record_batch(
        self,
        *,
        goal_check_in_params: Mapping[str, Mapping[str, Any] | BulkCheckInEntry],
        week_start: date | str | None,
        viewer: Any,
    ) -> BulkCheckInResult:
        result = BulkCheckInResult()
        if not goal_check_in_params:
            return result

        rows = await self.session.execute(select(Goal).where(Goal.id.in_(list(goal_check_in_params))))
        goals = {g.id: g for g in rows.scalars().all()}

        for goal_id, raw in goal_check_in_params.items():
            goal = goals.get(goal_id)
            if goal is None or goal.completed_at is not None:
                continue
            if not self.can_view(goal, viewer):
                result.fail(goal_id, NO_PERMISSION_MESSAGE)
                continue

            try:
                entry = raw if isinstance(raw, BulkCheckInEntry) else BulkCheckInEntry.model_validate(raw)
            except ValidationError as exc:
                result.fail(goal_id, "; ".join(e["msg"] for e in exc.errors()))
                continue
            if entry.is_blank:
                continue

            try:
                await self.recorder.record(
                    goal=goal,
                    reporter_id=viewer.teammate_id,
                    confidence_percentage=entry.confidence_percentage,
                    confidence_reason=entry.confidence_reason,
                    most_likely_target_date=entry.most_likely_target_date,
                    week_start=week_start,
                )
            except (GoalGraphError, SQLAlchemyError) as exc:
                logger.warning("Bulk check-in failed for goal %s: %s", goal_id, exc)
                result.fail(goal_id, str(exc))
                continue
            result.success_count += 1

        logger.info(
            "Bulk check-in: %s succeeded, %s failed",
            result.success_count,
            result.failure_count,
        )
        return result
