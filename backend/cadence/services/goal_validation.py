"""Model-level validation for goals.

Returns messages instead of raising so callers can merge them with check-in
errors before deciding what to surface.
"""

from __future__ import annotations

from typing import Any

from cadence.schemas.goal import GOAL_TYPES, INITIAL_CONFIDENCES, PRIVACY_LEVELS


def target_date_errors(*, earliest: Any, most_likely: Any, latest: Any) -> list[str]:
    errors: list[str] = []
    if earliest is not None and most_likely is not None and earliest > most_likely:
        errors.append("earliest_target_date must be less than or equal to most_likely_target_date")
    if most_likely is not None and latest is not None and most_likely > latest:
        errors.append("most_likely_target_date must be less than or equal to latest_target_date")
    if most_likely is None and earliest is not None and latest is not None and earliest > latest:
        errors.append("earliest_target_date must be less than or equal to latest_target_date")
    return errors


def goal_errors(goal: Any) -> list[str]:
    errors: list[str] = []

    if not (goal.title or "").strip():
        errors.append("Title can't be blank")
    if goal.goal_type not in GOAL_TYPES:
        errors.append(f"'{goal.goal_type}' is not a valid goal_type")
    if goal.privacy_level not in PRIVACY_LEVELS:
        errors.append(f"'{goal.privacy_level}' is not a valid privacy_level")
    if goal.initial_confidence not in INITIAL_CONFIDENCES:
        errors.append(f"'{goal.initial_confidence}' is not a valid initial_confidence")
    if not goal.owner_type or not goal.owner_id:
        errors.append("Owner must exist")
    elif goal.owner_type not in ("individual", "org_unit"):
        errors.append(f"'{goal.owner_type}' is not a valid owner_type")
    if not goal.creator_id:
        errors.append("Creator must exist")

    if goal.owner_type == "org_unit" and goal.privacy_level == "only_creator_and_owner":
        errors.append("Privacy level only_creator_and_owner is not available for team, department, or company goals")

    errors.extend(
        target_date_errors(
            earliest=goal.earliest_target_date,
            most_likely=goal.most_likely_target_date,
            latest=goal.latest_target_date,
        )
    )
    return errors
