"""Goal hierarchy views scoped to a caller-supplied set of goals.

A goal is a root *for this view* when none of its parents is in the set,
even if it has parents elsewhere in the organization. Links with only one
endpoint in the set are ignored here (they are not removed).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Sequence

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.models.goal import Goal, GoalCheckIn, GoalLink
from cadence.services.permissions import ViewPermission, can_view_goal
from cadence.utils.dates import week_start


@dataclass
class GoalHierarchy:
    roots: list[Any]
    parent_child: dict[str, list[Any]]
    links: list[Any]


@dataclass
class HierarchyNode:
    goal: Any
    children: list["HierarchyNode"]
    direct_children_count: int
    total_descendants_count: int
    most_recent_check_in: Any | None = None
    current_week_check_in: Any | None = None
    can_check_in: bool = False


@dataclass
class EnrichedHierarchy:
    roots: list[HierarchyNode]
    most_recent_check_ins_by_goal: dict[str, Any] = field(default_factory=dict)
    current_week_check_ins_by_goal: dict[str, Any] = field(default_factory=dict)
    can_check_in_goals: set[str] = field(default_factory=set)


def build_hierarchy(goals: Sequence[Any], links: Iterable[Any]) -> GoalHierarchy:
    by_id = {g.id: g for g in goals}
    order = {g.id: i for i, g in enumerate(goals)}

    in_scope = [
        link
        for link in links
        if link.parent_goal_id in by_id and link.child_goal_id in by_id and link.parent_goal_id != link.child_goal_id
    ]

    child_ids: dict[str, set[str]] = {g.id: set() for g in goals}
    has_parent: set[str] = set()
    for link in in_scope:
        child_ids[link.parent_goal_id].add(link.child_goal_id)
        has_parent.add(link.child_goal_id)

    parent_child = {
        goal_id: [by_id[cid] for cid in sorted(ids, key=order.__getitem__)]
        for goal_id, ids in child_ids.items()
    }
    roots = [g for g in goals if g.id not in has_parent]
    return GoalHierarchy(roots=roots, parent_child=parent_child, links=in_scope)


def _stamp(value: datetime | None) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def most_recent_check_ins(check_ins: Iterable[Any]) -> dict[str, Any]:
    """Latest week per goal; same week resolved by latest ``updated_at``."""
    latest: dict[str, Any] = {}
    for check_in in check_ins:
        current = latest.get(check_in.goal_id)
        key = (check_in.check_in_week_start, _stamp(check_in.updated_at))
        if current is None or key > (current.check_in_week_start, _stamp(current.updated_at)):
            latest[check_in.goal_id] = check_in
    return latest


def check_ins_for_week(check_ins: Iterable[Any], week: date) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for check_in in check_ins:
        if check_in.check_in_week_start != week:
            continue
        current = out.get(check_in.goal_id)
        if current is None or _stamp(check_in.updated_at) > _stamp(current.updated_at):
            out[check_in.goal_id] = check_in
    return out


def enrich_hierarchy(
    hierarchy: GoalHierarchy,
    *,
    check_ins: Iterable[Any] = (),
    viewer: Any | None = None,
    can_view: ViewPermission = can_view_goal,
    current_week: date | None = None,
) -> EnrichedHierarchy:
    check_ins = list(check_ins)
    week = week_start(current_week)

    most_recent = most_recent_check_ins(check_ins)
    this_week = check_ins_for_week(check_ins, week)

    can_check_in: set[str] = set()
    if viewer is not None:
        for goal_id, goal in _all_goals(hierarchy).items():
            if can_view(goal, viewer):
                can_check_in.add(goal_id)

    descendants_memo: dict[str, frozenset[str]] = {}

    def descendants(goal_id: str) -> frozenset[str]:
        if goal_id in descendants_memo:
            return descendants_memo[goal_id]
        found: set[str] = set()
        queue = deque([goal_id])
        while queue:
            current = queue.popleft()
            for child in hierarchy.parent_child.get(current, []):
                if child.id == goal_id or child.id in found:
                    continue
                found.add(child.id)
                queue.append(child.id)
        result = frozenset(found)
        descendants_memo[goal_id] = result
        return result

    def build_node(goal: Any, path: frozenset[str]) -> HierarchyNode:
        children = [c for c in hierarchy.parent_child.get(goal.id, []) if c.id not in path]
        return HierarchyNode(
            goal=goal,
            children=[build_node(c, path | {c.id}) for c in children],
            direct_children_count=len(hierarchy.parent_child.get(goal.id, [])),
            total_descendants_count=len(descendants(goal.id)),
            most_recent_check_in=most_recent.get(goal.id),
            current_week_check_in=this_week.get(goal.id),
            can_check_in=goal.id in can_check_in,
        )

    roots = [build_node(goal, frozenset({goal.id})) for goal in hierarchy.roots]
    return EnrichedHierarchy(
        roots=roots,
        most_recent_check_ins_by_goal=most_recent,
        current_week_check_ins_by_goal=this_week,
        can_check_in_goals=can_check_in,
    )


def _all_goals(hierarchy: GoalHierarchy) -> dict[str, Any]:
    goals: dict[str, Any] = {g.id: g for g in hierarchy.roots}
    for parent_id, children in hierarchy.parent_child.items():
        for child in children:
            goals.setdefault(child.id, child)
    return goals


class GoalHierarchyService:
    def __init__(self, session: AsyncSession, *, can_view: ViewPermission = can_view_goal):
        self.session = session
        self.can_view = can_view

    async def links_within(self, goal_ids: Sequence[str]) -> list[GoalLink]:
        if not goal_ids:
            return []
        result = await self.session.execute(
            select(GoalLink).where(
                and_(GoalLink.parent_goal_id.in_(goal_ids), GoalLink.child_goal_id.in_(goal_ids))
            )
        )
        return list(result.scalars().all())

    async def check_ins_for(self, goal_ids: Sequence[str]) -> list[GoalCheckIn]:
        if not goal_ids:
            return []
        result = await self.session.execute(
            select(GoalCheckIn)
            .where(GoalCheckIn.goal_id.in_(goal_ids))
            .order_by(GoalCheckIn.goal_id, GoalCheckIn.check_in_week_start)
        )
        return list(result.scalars().all())

    async def build(self, goals: Sequence[Goal]) -> GoalHierarchy:
        links = await self.links_within([g.id for g in goals])
        return build_hierarchy(goals, links)

    async def enriched(
        self,
        goals: Sequence[Goal],
        *,
        viewer: Any | None = None,
        current_week: date | None = None,
    ) -> EnrichedHierarchy:
        goal_ids = [g.id for g in goals]
        hierarchy = build_hierarchy(goals, await self.links_within(goal_ids))
        check_ins = await self.check_ins_for(goal_ids)
        return enrich_hierarchy(
            hierarchy,
            check_ins=check_ins,
            viewer=viewer,
            can_view=self.can_view,
            current_week=current_week,
        )
