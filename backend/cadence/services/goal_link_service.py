"""Goal link service.

Every edge goes through here so the link graph stays acyclic. Creating a new
goal together with its link is a single savepoint, so a child can never be
left unattached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Literal, Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.core.config import settings
from cadence.core.exceptions import (
    CycleDetectedError,
    GoalGraphError,
    NotFoundError,
    ValidationFailedError,
)
from cadence.models.goal import Goal, GoalLink
from cadence.schemas.goal import DEFAULT_INITIAL_CONFIDENCE, parse_owner
from cadence.services.goal_graph import GoalGraphService
from cadence.services.goal_validation import goal_errors
from cadence.services.outline_parser import OutlineItem
from cadence.utils.dates import today_utc

logger = logging.getLogger(__name__)

LinkDirection = Literal["outgoing", "incoming"]

SELF_LINK_MESSAGE = "cannot link a goal to itself"
DUPLICATE_LINK_MESSAGE = "link already exists"
OWNER_MISMATCH_MESSAGE = "A team, department, or company goal cannot be a child of a teammate goal"
CYCLE_MESSAGE = "This link would create a circular dependency"


@dataclass
class BulkGoalCreationResult:
    created: list[Goal] = field(default_factory=list)
    links: list[GoalLink] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def link_errors(parent: Any, child: Any) -> list[str]:
    """Structural rules that do not need the rest of the graph."""
    errors: list[str] = []
    if parent.id is not None and parent.id == child.id:
        errors.append(SELF_LINK_MESSAGE)
    if child.owner_type == "org_unit" and parent.owner_type == "individual":
        errors.append(OWNER_MISMATCH_MESSAGE)
    return errors


class GoalLinkService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.graph = GoalGraphService(session)

    async def _get_goal(self, goal_id: str) -> Goal:
        goal = await self.session.get(Goal, goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        return goal

    async def get_link(self, parent_goal_id: str, child_goal_id: str) -> GoalLink | None:
        result = await self.session.execute(
            select(GoalLink).where(
                and_(GoalLink.parent_goal_id == parent_goal_id, GoalLink.child_goal_id == child_goal_id)
            )
        )
        return result.scalar_one_or_none()

    async def create_link(
        self,
        *,
        parent_goal_id: str,
        child_goal_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> GoalLink:
        if parent_goal_id == child_goal_id:
            raise ValidationFailedError(SELF_LINK_MESSAGE)

        parent = await self._get_goal(parent_goal_id)
        child = await self._get_goal(child_goal_id)

        errors = link_errors(parent, child)
        if await self.get_link(parent_goal_id, child_goal_id) is not None:
            errors.insert(0, DUPLICATE_LINK_MESSAGE)
        if errors:
            raise ValidationFailedError(errors)

        adjacency = await self.graph.load_adjacency(org_id=parent.organization_id)
        if adjacency.would_create_cycle(parent_goal_id, child_goal_id):
            raise CycleDetectedError(CYCLE_MESSAGE)

        link = GoalLink(parent_goal_id=parent_goal_id, child_goal_id=child_goal_id, extra_metadata=metadata)
        try:
            async with self.session.begin_nested():
                self.session.add(link)
                await self.session.flush()
        except IntegrityError:
            # lost a race with a concurrent insert of the same edge
            raise ValidationFailedError(DUPLICATE_LINK_MESSAGE) from None

        logger.info("Goal link created: %s -> %s", parent_goal_id, child_goal_id)
        return link

    async def remove_link(self, *, parent_goal_id: str, child_goal_id: str) -> None:
        link = await self.get_link(parent_goal_id, child_goal_id)
        if link is None:
            raise NotFoundError(f"Link {parent_goal_id} -> {child_goal_id} not found")
        await self.session.delete(link)
        await self.session.flush()
        logger.info("Goal link removed: %s -> %s", parent_goal_id, child_goal_id)

    def _new_goal(self, **fields: Any) -> Goal:
        owner = fields.pop("owner", None)
        fields.setdefault("initial_confidence", DEFAULT_INITIAL_CONFIDENCE)
        goal = Goal(**fields)
        if owner is not None:
            goal.owner = parse_owner(owner) if isinstance(owner, dict) else owner
        errors = goal_errors(goal)
        if errors:
            raise ValidationFailedError(errors)
        return goal

    async def _attach(self, parent: Goal, child: Goal, metadata: dict[str, Any] | None = None) -> GoalLink:
        errors = link_errors(parent, child)
        if errors:
            raise ValidationFailedError(errors)
        link = GoalLink(parent_goal_id=parent.id, child_goal_id=child.id, extra_metadata=metadata)
        self.session.add(link)
        await self.session.flush()
        return link

    async def create_child_goal(
        self,
        parent: Goal,
        *,
        metadata: dict[str, Any] | None = None,
        **fields: Any,
    ) -> Goal:
        """Create a goal and its link under ``parent`` in one step.

        A brand-new goal has no descendants, so the edge cannot close a cycle.
        """
        fields.setdefault("organization_id", parent.organization_id)
        child = self._new_goal(**fields)

        async with self.session.begin_nested():
            self.session.add(child)
            await self.session.flush()
            await self._attach(parent, child, metadata)

        logger.info("Child goal created: %s under %s", child.id, parent.id)
        return child

    async def create_linked_goals(
        self,
        *,
        linking_goal: Goal,
        direction: LinkDirection,
        titles: Sequence[str],
        creator_id: str,
        goal_type: str | None = None,
    ) -> BulkGoalCreationResult:
        """Create one goal per title, linked below (outgoing) or above (incoming).

        All or nothing: the first failure rolls back every goal and link.
        """
        if direction not in ("outgoing", "incoming"):
            raise ValidationFailedError(f"'{direction}' is not a valid link direction")

        cleaned = [t.strip() for t in titles if t and t.strip()]
        if not cleaned:
            raise ValidationFailedError("At least one goal title is required")

        if direction == "outgoing":
            goal_type = goal_type or "quantitative_key_result"
            target = linking_goal.most_likely_target_date or (
                today_utc() + timedelta(days=settings.DEFAULT_CHILD_TARGET_DAYS)
            )
        else:
            goal_type = goal_type or "inspirational_objective"
            target = None

        result = BulkGoalCreationResult()
        async with self.session.begin_nested():
            for title in cleaned:
                goal = self._new_goal(
                    organization_id=linking_goal.organization_id,
                    title=title,
                    description=title,
                    goal_type=goal_type,
                    owner_type=linking_goal.owner_type,
                    owner_id=linking_goal.owner_id,
                    creator_id=creator_id,
                    privacy_level=linking_goal.privacy_level,
                    most_likely_target_date=target,
                )
                self.session.add(goal)
                await self.session.flush()

                if direction == "outgoing":
                    link = await self._attach(linking_goal, goal)
                else:
                    link = await self._attach(goal, linking_goal)
                result.created.append(goal)
                result.links.append(link)

        logger.info(
            "Created %s %s goals linked to %s",
            len(result.created),
            direction,
            linking_goal.id,
        )
        return result

    async def _create_outline_item(
        self,
        item: OutlineItem,
        *,
        parent: Goal | None,
        organization_id: str,
        creator_id: str,
        owner: Any,
        privacy_level: str,
    ) -> tuple[Goal, GoalLink | None]:
        goal = self._new_goal(
            organization_id=organization_id,
            title=item.title,
            goal_type=item.goal_type,
            owner=owner,
            creator_id=creator_id,
            privacy_level=privacy_level,
        )
        self.session.add(goal)
        await self.session.flush()
        link = await self._attach(parent, goal) if parent is not None else None
        return goal, link

    async def create_from_outline(
        self,
        *,
        items: Sequence[OutlineItem],
        creator_id: str,
        owner: Any,
        privacy_level: str,
        organization_id: str | None = None,
        parent_goal: Goal | None = None,
        all_or_nothing: bool = True,
    ) -> BulkGoalCreationResult:
        """Persist parsed outline items as goals and links.

        Items without a ``parent_index`` hang off ``parent_goal`` when given.
        With ``all_or_nothing`` the first failure raises and nothing is kept;
        otherwise each item gets its own savepoint and failures are collected.
        """
        if organization_id is None:
            if parent_goal is None:
                raise ValidationFailedError("organization_id is required without a parent goal")
            organization_id = parent_goal.organization_id

        result = BulkGoalCreationResult()
        by_index: dict[int, Goal] = {}
        common = dict(
            organization_id=organization_id,
            creator_id=creator_id,
            owner=owner,
            privacy_level=privacy_level,
        )

        if all_or_nothing:
            async with self.session.begin_nested():
                for index, item in enumerate(items):
                    parent = parent_goal if item.parent_index is None else by_index[item.parent_index]
                    try:
                        goal, link = await self._create_outline_item(item, parent=parent, **common)
                    except GoalGraphError as exc:
                        raise ValidationFailedError([f"{item.title}: {m}" for m in exc.messages]) from exc
                    by_index[index] = goal
                    result.created.append(goal)
                    if link is not None:
                        result.links.append(link)
            return result

        for index, item in enumerate(items):
            if item.parent_index is not None and item.parent_index not in by_index:
                result.errors.append(
                    {"index": index, "title": item.title, "message": "Parent goal was not created"}
                )
                continue
            parent = parent_goal if item.parent_index is None else by_index[item.parent_index]
            try:
                async with self.session.begin_nested():
                    goal, link = await self._create_outline_item(item, parent=parent, **common)
            except (GoalGraphError, SQLAlchemyError) as exc:
                logger.warning("Outline item %s (%r) failed: %s", index, item.title, exc)
                result.errors.append({"index": index, "title": item.title, "message": str(exc)})
                continue
            by_index[index] = goal
            result.created.append(goal)
            if link is not None:
                result.links.append(link)

        return result
