"""Session helpers in cadence.core.database."""

from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from cadence.core.database import build_engine, create_db_and_tables, get_db, session_scope
from cadence.core.exceptions import (
    CycleDetectedError,
    ForbiddenError,
    GoalGraphError,
    NotFoundError,
)


@pytest.mark.asyncio
async def test_create_db_and_tables_runs():
    await create_db_and_tables()


@pytest.mark.asyncio
async def test_get_db_yields_session():
    sessions = get_db()
    session = await sessions.__anext__()
    assert isinstance(session, AsyncSession)
    assert (await session.execute(text("SELECT 1"))).scalar_one() == 1
    await sessions.aclose()


@pytest.mark.asyncio
async def test_session_scope_reraises():
    with pytest.raises(NotFoundError):
        async with session_scope() as session:
            await session.execute(text("SELECT 1"))
            raise NotFoundError("Goal not found")


@pytest.mark.asyncio
async def test_sqlite_savepoint_rolls_back(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'nested.db'}")
    async with engine.connect() as conn:
        await conn.execute(text("CREATE TABLE t (v INTEGER)"))
        await conn.commit()

        async with conn.begin():
            await conn.execute(text("INSERT INTO t VALUES (1)"))
            nested = await conn.begin_nested()
            await conn.execute(text("INSERT INTO t VALUES (2)"))
            await nested.rollback()

        rows = (await conn.execute(text("SELECT v FROM t"))).scalars().all()
    await engine.dispose()
    assert rows == [1]


def test_domain_errors_share_a_base():
    for error in (NotFoundError, ForbiddenError, CycleDetectedError):
        assert issubclass(error, GoalGraphError)
    assert ForbiddenError("nope").messages == ["nope"]
