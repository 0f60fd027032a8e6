"""Declarative base and column mixins shared by every ORM model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Timezone-aware current time, evaluated per statement."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    Models carry no schema: the shared schema is selected through the
    connection's search path, so the same metadata works for any
    configured shared schema name.
    """

    type_annotation_map: dict[type, Any] = {}


class TimestampMixin:
    """Adds created_at and updated_at, both filled on the Python side."""

    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,
        nullable=True,
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,
        onupdate=utc_now,
        nullable=True,
    )


class SoftDeleteMixin:
    """Adds deleted_at; rows carrying it are never physically removed."""

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
