"""Pytest configuration.

Settings are environment-driven, so minimal test defaults are set here
before anything from ``cadence`` is imported. Service tests run against a
throwaway SQLite file per test (aiosqlite), created from the model metadata.
"""

import os


os.environ.setdefault("APP_NAME", "Cadence")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cadence.core.database import build_engine
from cadence.models import Base, Goal, GoalCheckIn, GoalLink
from cadence.services.confidence_moments import CollectingMomentPublisher
from cadence.services.permissions import Viewer


@pytest.fixture
def org_id() -> str:
    return str(uuid4())


@pytest.fixture
def teammate_id() -> str:
    return str(uuid4())


@pytest.fixture
def viewer(org_id: str, teammate_id: str) -> Viewer:
    return Viewer(teammate_id=teammate_id, organization_id=org_id)


@pytest.fixture
def publisher() -> CollectingMomentPublisher:
    return CollectingMomentPublisher()


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cadence_test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_goal(db_session: AsyncSession, org_id: str, teammate_id: str):
    """Factory persisting a valid goal; keyword overrides win."""

    async def _make(**overrides) -> Goal:
        values = dict(
            organization_id=org_id,
            title="Goal",
            goal_type="quantitative_key_result",
            owner_type="individual",
            owner_id=teammate_id,
            creator_id=teammate_id,
            privacy_level="everyone_in_company",
            initial_confidence="stretch",
        )
        values.update(overrides)
        goal = Goal(**values)
        db_session.add(goal)
        await db_session.flush()
        return goal

    return _make


@pytest.fixture
def make_link(db_session: AsyncSession):
    async def _make(parent: Goal, child: Goal) -> GoalLink:
        link = GoalLink(parent_goal_id=parent.id, child_goal_id=child.id)
        db_session.add(link)
        await db_session.flush()
        return link

    return _make


@pytest.fixture
def make_check_in(db_session: AsyncSession, teammate_id: str):
    async def _make(goal: Goal, week: date, confidence: int, reason: str | None = None) -> GoalCheckIn:
        check_in = GoalCheckIn(
            goal_id=goal.id,
            check_in_week_start=week,
            confidence_percentage=confidence,
            confidence_reason=reason,
            reporter_id=teammate_id,
        )
        db_session.add(check_in)
        await db_session.flush()
        return check_in

    return _make
