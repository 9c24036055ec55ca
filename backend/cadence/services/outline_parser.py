"""Free-text outline -> candidate goal forest.

    Ship v2          -> inspirational_objective
    - design         -> default type, parent 0
    - build          -> default type, parent 0
    Launch           -> default type, no parent

Nothing is persisted here; see ``GoalLinkService.create_from_outline``.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

SUB_ITEM_RE = re.compile(r"^(?:\d|[*•\-–]|\.{2,})")
MARKER_RE = re.compile(r"^(?:\d+[.)]|[*•\-–]+|\.{2,})\s*")

PARENT_GOAL_TYPE = "inspirational_objective"


@dataclass(frozen=True)
class OutlineItem:
    title: str
    goal_type: str
    parent_index: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def is_sub_item(line: str) -> bool:
    return bool(SUB_ITEM_RE.match(line))


def strip_marker(line: str) -> str:
    stripped = MARKER_RE.sub("", line, count=1).strip()
    return stripped or line


def parse_outline(text: str | None, default_goal_type: str) -> list[OutlineItem]:
    lines = [line.strip() for line in (text or "").splitlines()]
    lines = [line for line in lines if line]

    items: list[OutlineItem] = []
    attach_to: int | None = None

    for i, line in enumerate(lines):
        if is_sub_item(line):
            title = strip_marker(line)
            if attach_to is None:
                items.append(OutlineItem(title=title, goal_type=default_goal_type))
                attach_to = len(items) - 1
            else:
                items.append(OutlineItem(title=title, goal_type=default_goal_type, parent_index=attach_to))
            continue

        followed_by_sub = i + 1 < len(lines) and is_sub_item(lines[i + 1])
        items.append(OutlineItem(title=line, goal_type=PARENT_GOAL_TYPE if followed_by_sub else default_goal_type))
        attach_to = len(items) - 1 if followed_by_sub else None

    return items
