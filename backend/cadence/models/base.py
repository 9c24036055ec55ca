"""
Base Model Classes
==================

Shared base classes and mixins for all SQLAlchemy models.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String, func, inspect
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all models.
    """

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {
            attr.key: getattr(self, attr.key)
            for attr in inspect(self).mapper.column_attrs
        }


class UUIDMixin:
    """
    Mixin that adds a UUID primary key.

    Stored as its canonical 36-character string so the same schema runs on
    Postgres and SQLite.
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        doc="Unique identifier (UUID)",
    )


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamps.

    - created_at: Set automatically on insert
    - updated_at: Updated automatically on every change
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="Record creation timestamp",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="Last update timestamp",
    )


class TenantMixin:
    """
    Mixin that adds organization_id for multi-tenant scoping.

    Goals belong to exactly one company; hierarchy queries never cross it.
    """

    organization_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        doc="Organization this record belongs to",
    )
