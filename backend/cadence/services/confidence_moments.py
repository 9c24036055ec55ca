"""
Confidence Moments - outbound events for large confidence swings

A moment is published after a check-in is stored when the new confidence
differs from the previous week's by at least ``CHECK_IN_MOMENT_DELTA``.
Publishing is best effort: a failing publisher never undoes the check-in.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfidenceMoment:
    goal_id: str
    check_in_id: str
    reporter_id: str
    week_start: date
    previous_confidence: int
    confidence: int
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def delta(self) -> int:
        return self.confidence - self.previous_confidence

    @property
    def direction(self) -> str:
        return "up" if self.delta > 0 else "down"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["week_start"] = self.week_start.isoformat()
        data["occurred_at"] = self.occurred_at.isoformat()
        data["delta"] = self.delta
        data["direction"] = self.direction
        return data


class ConfidenceMomentPublisher(Protocol):
    async def publish(self, moment: ConfidenceMoment) -> None: ...


class LoggingMomentPublisher:
    """Default publisher: records the moment in the application log."""

    async def publish(self, moment: ConfidenceMoment) -> None:
        logger.info(
            "Confidence moment: goal=%s %s%s (%s -> %s) week=%s",
            moment.goal_id,
            "+" if moment.delta > 0 else "",
            moment.delta,
            moment.previous_confidence,
            moment.confidence,
            moment.week_start,
        )


class CollectingMomentPublisher:
    """Keeps published moments in memory."""

    def __init__(self):
        self.moments: list[ConfidenceMoment] = []

    async def publish(self, moment: ConfidenceMoment) -> None:
        self.moments.append(moment)


def is_moment(previous: int | None, current: int, threshold: int) -> bool:
    if previous is None:
        return False
    return abs(current - previous) >= threshold


async def publish_safely(publisher: ConfidenceMomentPublisher | None, moment: ConfidenceMoment) -> bool:
    if publisher is None:
        return False
    try:
        await publisher.publish(moment)
        return True
    except Exception:
        logger.exception("Failed to publish confidence moment for goal %s", moment.goal_id)
        return False
