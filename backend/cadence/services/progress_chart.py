"""Forecast-vs-actual chart data for a single goal.

Samples the schedule thresholds every Monday and stacks them into four bands
(red / yellow / light green / dark green) that always fill 0..100, then
overlays the reported check-in confidence as a point series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.core.exceptions import NotFoundError
from cadence.models.goal import Goal, GoalCheckIn
from cadence.services.schedule_confidence import thresholds_for_goal
from cadence.utils.dates import first_monday_after, to_timestamp_ms, week_start, weekly_mondays

logger = logging.getLogger(__name__)

BAND_STACK = "forecast"

BANDS: tuple[tuple[str, str, str], ...] = (
    # (key, series name, color), bottom to top
    ("red", "Behind schedule", "#dc3545"),
    ("yellow", "At risk", "#ffc107"),
    ("light_green", "On schedule", "#a3cfbb"),
    ("dark_green", "Ahead of schedule", "#198754"),
)
ACTUAL_SERIES = ("Reported confidence", "#0d6efd")


@dataclass
class ChartSeries:
    name: str
    data: list[list[int]]
    color: str
    type: str
    stack: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "data": self.data, "color": self.color, "type": self.type}
        if self.stack is not None:
            out["stack"] = self.stack
        return out


@dataclass
class ProgressChartData:
    categories: list[str]
    series: list[ChartSeries]
    thresholds_table: list[dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "categories": self.categories,
            "series": [s.to_dict() for s in self.series],
            "thresholds_table": self.thresholds_table,
        }


def band_heights(behind: int, on: int, ahead: int) -> dict[str, int]:
    """Four non-negative band heights summing to exactly 100."""
    b = max(0, min(100, behind))
    o = max(b, min(100, on))
    a = max(o, min(100, ahead))
    if (b, o, a) != (behind, on, ahead):
        logger.warning(
            "Thresholds out of order or range (behind=%s on=%s ahead=%s); clamped to %s/%s/%s",
            behind,
            on,
            ahead,
            b,
            o,
            a,
        )
    return {"red": b, "yellow": o - b, "light_green": a - o, "dark_green": 100 - a}


def build_progress_chart(goal: Any, check_ins: Iterable[Any]) -> ProgressChartData | None:
    target_dates = [
        d for d in (goal.earliest_target_date, goal.most_likely_target_date, goal.latest_target_date) if d
    ]
    # bands are anchored on the most-likely date
    if goal.most_likely_target_date is None or goal.started_at is None:
        return None

    first = first_monday_after(goal.started_at)
    last = week_start(max(target_dates)) + timedelta(days=7)
    mondays = weekly_mondays(first, last)

    check_ins = sorted(check_ins, key=lambda c: c.check_in_week_start)
    confidence_by_week: dict[date, int] = {c.check_in_week_start: c.confidence_percentage for c in check_ins}

    band_points: dict[str, list[list[int]]] = {key: [] for key, _, _ in BANDS}
    table: list[dict[str, Any]] = []

    for monday in mondays:
        ts = to_timestamp_ms(monday)
        rounded = thresholds_for_goal(goal, monday).rounded()
        heights = band_heights(
            rounded["behind_schedule_if_confidence_below"],
            rounded["on_schedule_if_confidence_above"],
            rounded["ahead_of_schedule_if_confidence_above"],
        )
        for key, points in band_points.items():
            points.append([ts, heights[key]])

        row: dict[str, Any] = {"week": monday.isoformat(), **rounded}
        if monday in confidence_by_week:
            row["check_in_confidence"] = confidence_by_week[monday]
        table.append(row)

    # bands are stacked top-down by the renderer, so emit highest band first
    series = [
        ChartSeries(name=name, data=band_points[key], color=color, type="area", stack=BAND_STACK)
        for key, name, color in reversed(BANDS)
    ]
    series.append(
        ChartSeries(
            name=ACTUAL_SERIES[0],
            data=[[to_timestamp_ms(c.check_in_week_start), c.confidence_percentage] for c in check_ins],
            color=ACTUAL_SERIES[1],
            type="scatter",
        )
    )

    return ProgressChartData(
        categories=[m.isoformat() for m in mondays],
        series=series,
        thresholds_table=table,
    )


class ProgressChartService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def build(self, goal_id: str) -> ProgressChartData | None:
        goal = await self.session.get(Goal, goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")

        result = await self.session.execute(
            select(GoalCheckIn)
            .where(GoalCheckIn.goal_id == goal_id)
            .order_by(GoalCheckIn.check_in_week_start.asc())
        )
        return build_progress_chart(goal, result.scalars().all())
