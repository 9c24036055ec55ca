"""
Database Configuration
======================

SQLAlchemy async database setup with connection pooling and session management.
Postgres (asyncpg) is the production backend; SQLite (aiosqlite) is supported
for local runs and tests.
"""

from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy.pool import NullPool

from cadence.core.config import settings
from cadence.models.base import Base


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def enable_sqlite_savepoints(sync_engine: Engine) -> None:
    """
    Let pysqlite/aiosqlite honour SAVEPOINT.

    The driver's own transaction handling swallows BEGIN, which breaks
    ``session.begin_nested()``. Taking over BEGIN restores it.
    """

    @event.listens_for(sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with backend-appropriate pooling."""
    engine_kwargs: dict = dict(echo=echo)

    if _is_sqlite(url):
        engine_kwargs["poolclass"] = NullPool
    elif settings.APP_ENV == "test":
        engine_kwargs["poolclass"] = NullPool
        engine_kwargs["pool_pre_ping"] = True
    else:
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 20
        engine_kwargs["pool_pre_ping"] = True

    async_engine = create_async_engine(url, **engine_kwargs)
    if _is_sqlite(url):
        enable_sqlite_savepoints(async_engine.sync_engine)
    return async_engine


engine: AsyncEngine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Session factory
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def create_db_and_tables() -> None:
    """
    Create database tables if they don't exist.

    Note: In production, use Alembic migrations instead.
    This is primarily for development convenience.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Creates a new database session per unit of work and ensures
    proper cleanup afterwards.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional scope around a series of service calls.

    Commits on success, rolls back and re-raises on error.

    Example:
        async with session_scope() as session:
            await CheckInService(session).record(goal=goal, reporter_id=me, confidence_percentage=70)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
