"""Goal link adjacency and hierarchy closure."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from cadence.models.base import utc_now
from cadence.services.goal_graph import GoalAdjacency, GoalGraphService, resolve_hierarchy_ids


def _adjacency(*pairs):
    return GoalAdjacency.from_pairs(pairs)


def test_isolated_goal_resolves_to_itself():
    assert resolve_hierarchy_ids(GoalAdjacency(), "solo") == {"solo"}


def test_closure_follows_parents_and_children():
    # a -> b -> c, and d -> b (second parent), c -> e
    adjacency = _adjacency(("a", "b"), ("b", "c"), ("d", "b"), ("c", "e"), ("x", "y"))
    assert resolve_hierarchy_ids(adjacency, "c") == {"a", "b", "c", "d", "e"}


def test_closure_is_symmetric_within_a_component():
    adjacency = _adjacency(("a", "b"), ("b", "c"), ("d", "b"), ("c", "e"))
    component = resolve_hierarchy_ids(adjacency, "a")
    for member in component:
        assert resolve_hierarchy_ids(adjacency, member) == component


def test_closure_terminates_on_stored_cycle():
    adjacency = _adjacency(("a", "b"), ("b", "c"), ("c", "a"))
    assert resolve_hierarchy_ids(adjacency, "b") == {"a", "b", "c"}


def test_ancestors_and_descendants():
    adjacency = _adjacency(("a", "b"), ("b", "c"), ("d", "b"))
    assert adjacency.ancestors("c") == {"a", "b", "d"}
    assert adjacency.descendants("a") == {"b", "c"}
    assert adjacency.descendants("c") == set()


def test_would_create_cycle():
    adjacency = _adjacency(("a", "b"), ("b", "c"))
    assert adjacency.would_create_cycle("c", "a") is True
    assert adjacency.would_create_cycle("a", "a") is True
    assert adjacency.would_create_cycle("a", "c") is False
    assert adjacency.would_create_cycle("x", "a") is False


def test_from_links_and_remove():
    links = [SimpleNamespace(parent_goal_id="p", child_goal_id="c")]
    adjacency = GoalAdjacency.from_links(links)
    assert adjacency.children_of("p") == {"c"}
    adjacency.remove("p", "c")
    assert adjacency.children_of("p") == set()
    assert adjacency.parents_of("c") == set()


@pytest.mark.asyncio
async def test_service_loads_links_and_resolves_component(db_session, make_goal, make_link):
    top = await make_goal(title="Top", goal_type="inspirational_objective")
    mid = await make_goal(title="Mid")
    leaf = await make_goal(title="Leaf")
    other = await make_goal(title="Unrelated")
    await make_link(top, mid)
    await make_link(mid, leaf)

    service = GoalGraphService(db_session)
    assert await service.hierarchy_ids(leaf.id) == {top.id, mid.id, leaf.id}
    assert await service.hierarchy_ids(other.id) == {other.id}

    goals = await service.hierarchy_goals(mid.id)
    assert {g.id for g in goals} == {top.id, mid.id, leaf.id}


@pytest.mark.asyncio
async def test_service_excludes_deleted_goals_unless_asked(db_session, make_goal, make_link):
    parent = await make_goal(title="Parent", goal_type="inspirational_objective")
    child = await make_goal(title="Child", deleted_at=utc_now())
    await make_link(parent, child)

    service = GoalGraphService(db_session)
    assert {g.id for g in await service.hierarchy_goals(parent.id)} == {parent.id}
    assert {g.id for g in await service.hierarchy_goals(parent.id, include_deleted=True)} == {parent.id, child.id}


@pytest.mark.asyncio
async def test_load_adjacency_scoped_to_organization(db_session, make_goal, make_link):
    a = await make_goal()
    b = await make_goal()
    c = await make_goal(organization_id="another-org")
    d = await make_goal(organization_id="another-org")
    await make_link(a, b)
    await make_link(c, d)

    adjacency = await GoalGraphService(db_session).load_adjacency(org_id=a.organization_id)
    assert adjacency.children_of(a.id) == {b.id}
    assert adjacency.children_of(c.id) == set()
