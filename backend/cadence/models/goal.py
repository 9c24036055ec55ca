"""Goal graph models.

- Goal: a unit of intent (objective or key result)
- GoalLink: directed parent -> child edge; the links form a DAG
- GoalCheckIn: one confidence report per goal per ISO week (Monday start)

Goals are tenant-scoped via organization_id. Links and check-ins inherit the
scope of the goals they reference.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cadence.models.base import Base, JSONType, TenantMixin, TimestampMixin, UUIDMixin
from cadence.schemas.goal import (
    DEFAULT_INITIAL_CONFIDENCE,
    IndividualOwner,
    OrgUnitOwner,
    owner_from_columns,
)


class Goal(Base, UUIDMixin, TenantMixin, TimestampMixin):
    __tablename__ = "goals"

    title: Mapped[str] = mapped_column(Text(), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    goal_type: Mapped[str] = mapped_column(String(length=40), nullable=False)

    owner_type: Mapped[str] = mapped_column(String(length=20), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    creator_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    privacy_level: Mapped[str] = mapped_column(String(length=40), nullable=False)

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    earliest_target_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    most_likely_target_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    latest_target_date: Mapped[date | None] = mapped_column(Date(), nullable=True)

    initial_confidence: Mapped[str] = mapped_column(
        String(length=20),
        nullable=False,
        default=DEFAULT_INITIAL_CONFIDENCE,
        server_default=DEFAULT_INITIAL_CONFIDENCE,
    )

    @property
    def owner(self) -> IndividualOwner | OrgUnitOwner | None:
        return owner_from_columns(self.owner_type, self.owner_id)

    @owner.setter
    def owner(self, value: IndividualOwner | OrgUnitOwner) -> None:
        self.owner_type = value.kind
        self.owner_id = value.owner_id

    @property
    def target_dates(self) -> list[date]:
        return [
            d
            for d in (self.earliest_target_date, self.most_likely_target_date, self.latest_target_date)
            if d is not None
        ]

    def __repr__(self) -> str:
        return f"<Goal {self.id} {self.title!r}>"


class GoalLink(Base, UUIDMixin):
    __tablename__ = "goal_links"

    __table_args__ = (
        UniqueConstraint("parent_goal_id", "child_goal_id", name="uq_goal_links_parent_child"),
        CheckConstraint("parent_goal_id <> child_goal_id", name="ck_goal_links_not_self"),
    )

    parent_goal_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    child_goal_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    extra_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    parent: Mapped[Goal] = relationship("Goal", foreign_keys=[parent_goal_id])
    child: Mapped[Goal] = relationship("Goal", foreign_keys=[child_goal_id])

    def __repr__(self) -> str:
        return f"<GoalLink {self.parent_goal_id} -> {self.child_goal_id}>"


class GoalCheckIn(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "goal_check_ins"

    __table_args__ = (
        UniqueConstraint("goal_id", "check_in_week_start", name="uq_goal_check_ins_goal_week"),
        CheckConstraint(
            "confidence_percentage >= 0 AND confidence_percentage <= 100",
            name="ck_goal_check_ins_confidence_range",
        ),
    )

    goal_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    check_in_week_start: Mapped[date] = mapped_column(Date(), nullable=False)

    confidence_percentage: Mapped[int] = mapped_column(Integer(), nullable=False)
    confidence_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)
    reporter_id: Mapped[str] = mapped_column(String(36), nullable=False)

    goal: Mapped[Goal] = relationship("Goal")

    def __repr__(self) -> str:
        return f"<GoalCheckIn {self.goal_id} {self.check_in_week_start} {self.confidence_percentage}%>"
