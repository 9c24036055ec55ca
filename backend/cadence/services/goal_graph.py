"""In-memory adjacency over goal links.

Links are loaded once per unit of work and traversed iteratively with a
visited set, so a malformed cycle in stored data can never loop forever.
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.models.goal import Goal, GoalLink


@dataclass
class GoalAdjacency:
    parents: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    children: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))

    @classmethod
    def from_links(cls, links: Iterable[Any]) -> "GoalAdjacency":
        """Build from anything with ``parent_goal_id`` / ``child_goal_id``."""
        adjacency = cls()
        for link in links:
            adjacency.add(link.parent_goal_id, link.child_goal_id)
        return adjacency

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "GoalAdjacency":
        adjacency = cls()
        for parent_id, child_id in pairs:
            adjacency.add(parent_id, child_id)
        return adjacency

    def add(self, parent_id: str, child_id: str) -> None:
        self.children[parent_id].add(child_id)
        self.parents[child_id].add(parent_id)

    def remove(self, parent_id: str, child_id: str) -> None:
        self.children.get(parent_id, set()).discard(child_id)
        self.parents.get(child_id, set()).discard(parent_id)

    def parents_of(self, goal_id: str) -> set[str]:
        return set(self.parents.get(goal_id, ()))

    def children_of(self, goal_id: str) -> set[str]:
        return set(self.children.get(goal_id, ()))

    def _walk(self, start: str, edges: dict[str, set[str]]) -> set[str]:
        seen: set[str] = set()
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            for nxt in edges.get(current, ()):
                if nxt in seen:
                    continue
                seen.add(nxt)
                queue.append(nxt)
        seen.discard(start)
        return seen

    def ancestors(self, goal_id: str) -> set[str]:
        return self._walk(goal_id, self.parents)

    def descendants(self, goal_id: str) -> set[str]:
        return self._walk(goal_id, self.children)

    def hierarchy_ids(self, goal_id: str) -> set[str]:
        """Bidirectional closure: every id reachable by any mix of up/down steps."""
        visited: set[str] = {goal_id}
        queue: deque[str] = deque([goal_id])
        while queue:
            current = queue.popleft()
            neighbours = self.parents.get(current, set()) | self.children.get(current, set())
            for nxt in neighbours:
                if nxt not in visited:
                    visited.add(nxt)
                    queue.append(nxt)
        return visited

    def would_create_cycle(self, parent_id: str, child_id: str) -> bool:
        """True if adding parent -> child closes a loop (child already reaches parent)."""
        if parent_id == child_id:
            return True
        return parent_id in self.descendants(child_id)


def resolve_hierarchy_ids(adjacency: GoalAdjacency, goal_id: str) -> set[str]:
    return adjacency.hierarchy_ids(goal_id)


class GoalGraphService:
    """Loads the link graph and answers reachability queries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_adjacency(self, *, org_id: str | None = None) -> GoalAdjacency:
        query = select(GoalLink.parent_goal_id, GoalLink.child_goal_id)
        if org_id is not None:
            query = query.join(Goal, Goal.id == GoalLink.parent_goal_id).where(Goal.organization_id == org_id)
        rows = (await self.session.execute(query)).all()
        return GoalAdjacency.from_pairs((row[0], row[1]) for row in rows)

    async def hierarchy_ids(self, goal_id: str, *, adjacency: GoalAdjacency | None = None) -> set[str]:
        if adjacency is None:
            adjacency = await self.load_adjacency()
        return resolve_hierarchy_ids(adjacency, goal_id)

    async def hierarchy_goals(self, goal_id: str, *, include_deleted: bool = False) -> list[Goal]:
        """All goals in the connected component of ``goal_id``."""
        ids = await self.hierarchy_ids(goal_id)
        query = select(Goal).where(Goal.id.in_(ids))
        if not include_deleted:
            query = query.where(Goal.deleted_at.is_(None))
        result = await self.session.execute(query.order_by(Goal.created_at.asc()))
        return list(result.scalars().all())
