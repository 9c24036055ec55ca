"""Outline text parsing."""

from __future__ import annotations

import pytest

from cadence.services.outline_parser import OutlineItem, is_sub_item, parse_outline, strip_marker

KR = "quantitative_key_result"
OBJ = "inspirational_objective"


def test_objective_with_sub_items_then_standalone_line():
    items = parse_outline("Ship v2\n- design\n- build\nLaunch", KR)
    assert items == [
        OutlineItem("Ship v2", OBJ, None),
        OutlineItem("design", KR, 0),
        OutlineItem("build", KR, 0),
        OutlineItem("Launch", KR, None),
    ]


def test_blank_lines_are_dropped_and_lines_stripped():
    items = parse_outline("\n   Grow revenue  \n\n   \n  * Add pricing tier\n", KR)
    assert [i.to_dict() for i in items] == [
        {"title": "Grow revenue", "goal_type": OBJ, "parent_index": None},
        {"title": "Add pricing tier", "goal_type": KR, "parent_index": 0},
    ]


@pytest.mark.parametrize(
    "line, title",
    [
        ("- design", "design"),
        ("* design", "design"),
        ("• design", "design"),
        ("– design", "design"),
        ("1. Plan", "Plan"),
        ("2) Plan", "Plan"),
        (".. Dots", "Dots"),
        ("...More dots", "More dots"),
    ],
)
def test_sub_item_markers_are_stripped(line, title):
    assert is_sub_item(line)
    assert strip_marker(line) == title


def test_plain_lines_are_not_sub_items():
    assert not is_sub_item("Plan the launch")
    assert not is_sub_item(". single dot")


def test_leading_sub_items_attach_to_the_first_one():
    items = parse_outline("- orphan\n- sibling\nNext", "qualitative_key_result")
    assert items == [
        OutlineItem("orphan", "qualitative_key_result", None),
        OutlineItem("sibling", "qualitative_key_result", 0),
        OutlineItem("Next", "qualitative_key_result", None),
    ]


def test_multiple_groups_point_at_their_own_parent():
    items = parse_outline("A\n1. a1\nB\n2. b1\n3. b2", KR)
    assert [(i.title, i.parent_index) for i in items] == [
        ("A", None),
        ("a1", 0),
        ("B", None),
        ("b1", 2),
        ("b2", 2),
    ]
    assert items[0].goal_type == items[2].goal_type == OBJ


def test_empty_input():
    assert parse_outline("", KR) == []
    assert parse_outline(None, KR) == []
