"""
SQLAlchemy Base Model
Source: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
"""

import uuid
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


class TimeStampedModel:
    """
    Mixin for models with created_at and updated_at timestamps.

    Python-side defaults keep the values loaded on the instance after flush,
    so async sessions never need a lazy refresh to read them.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )


class UUIDModel:
    """
    Mixin for models with UUID primary key.

    Uses the generic Uuid type: native UUID on PostgreSQL, CHAR(32) elsewhere.
    Source: https://docs.sqlalchemy.org/en/20/core/type_basics.html#sqlalchemy.types.Uuid
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
