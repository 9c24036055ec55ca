"""Viewer capability predicate.

The goal graph only consumes ``can_view(goal, viewer) -> bool``. The default
implementation below applies the privacy levels to a pre-resolved
``Viewer``; deployments with a richer authorization layer pass their own
callable instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class Viewer:
    teammate_id: str
    organization_id: str
    is_admin: bool = False
    org_unit_ids: frozenset[str] = field(default_factory=frozenset)
    managed_teammate_ids: frozenset[str] = field(default_factory=frozenset)


class ViewPermission(Protocol):
    def __call__(self, goal: Any, viewer: Any) -> bool: ...


def _is_owner(goal: Any, viewer: Viewer) -> bool:
    if goal.owner_type == "individual":
        return goal.owner_id == viewer.teammate_id
    return goal.owner_id in viewer.org_unit_ids


def can_view_goal(goal: Any, viewer: Viewer | None) -> bool:
    if viewer is None:
        return False
    if goal.organization_id != viewer.organization_id:
        return False
    if viewer.is_admin or goal.creator_id == viewer.teammate_id:
        return True

    level = goal.privacy_level
    if level == "only_creator":
        return False
    if level == "only_creator_and_owner":
        return goal.owner_type == "individual" and goal.owner_id == viewer.teammate_id
    if level == "only_creator_owner_and_managers":
        if _is_owner(goal, viewer):
            return True
        return goal.owner_type == "individual" and goal.owner_id in viewer.managed_teammate_ids
    if level == "everyone_in_company":
        return True
    return False
