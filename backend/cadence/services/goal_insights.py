"""Derived labels for a single goal.

Pure functions over anything shaped like a ``Goal``; nothing here queries
the database. Callers that need link or check-in context pass it in.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any

from cadence.schemas.goal import KEY_RESULT_TYPES
from cadence.utils.dates import as_date, today_utc

OBJECTIVE_TYPE = "inspirational_objective"


def add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def goal_category(goal: Any) -> str:
    """vision | objective | key_result | bad_key_result.

    An objective without a date is a vision; a key result without a date is
    not measurable and is flagged as bad.
    """
    has_date = goal.most_likely_target_date is not None
    if goal.goal_type == OBJECTIVE_TYPE:
        return "objective" if has_date else "vision"
    return "key_result" if has_date else "bad_key_result"


def goal_status(goal: Any) -> str:
    if goal.deleted_at is not None:
        return "deleted"
    if goal.completed_at is not None:
        return "completed"
    if goal.started_at is None:
        return "draft"
    return "active"


def goal_timeframe(goal: Any, *, today: date | None = None) -> str:
    target = goal.most_likely_target_date
    if target is None:
        return "later"
    today = today or today_utc()
    if target <= add_months(today, 3):
        return "now"
    if target <= add_months(today, 9):
        return "next"
    return "later"


def needs_target_date(goal: Any) -> bool:
    return goal.goal_type != OBJECTIVE_TYPE and goal.most_likely_target_date is None


def needs_start(goal: Any) -> bool:
    return (
        goal.goal_type != OBJECTIVE_TYPE
        and goal.most_likely_target_date is not None
        and goal.started_at is None
    )


def is_key_result(goal: Any) -> bool:
    return goal.goal_type in KEY_RESULT_TYPES


def completion_outcome(goal: Any, last_check_in: Any | None) -> str | None:
    """hit | hit_late | miss for a completed goal, judged by its final check-in."""
    if goal.completed_at is None or last_check_in is None:
        return None
    confidence = last_check_in.confidence_percentage
    if confidence == 100:
        target = goal.most_likely_target_date
        if target is not None and as_date(goal.completed_at) > target:
            return "hit_late"
        return "hit"
    if confidence == 0:
        return "miss"
    return None


def should_show_warning(goal: Any, *, has_sub_goals: bool) -> bool:
    category = goal_category(goal)
    if category == "bad_key_result":
        return True
    if category in ("vision", "objective"):
        return not has_sub_goals
    return False
