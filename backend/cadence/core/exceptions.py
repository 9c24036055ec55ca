"""Domain errors raised by the goal graph services."""

from __future__ import annotations

from typing import Iterable


class GoalGraphError(Exception):
    """Base class; carries one or more human-readable messages."""

    def __init__(self, messages: str | Iterable[str]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: list[str] = [m for m in messages if m]
        super().__init__("; ".join(self.messages))

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(GoalGraphError):
    """A referenced goal or check-in does not exist."""


class ForbiddenError(GoalGraphError):
    """The viewer lacks the capability for this goal."""


class ValidationFailedError(GoalGraphError, ValueError):
    """Bad confidence value, bad date or a model-level invariant violation."""


class InvalidDateError(ValidationFailedError):
    """A date string could not be parsed."""


class CycleDetectedError(GoalGraphError):
    """A new link would make the goal graph cyclic."""
