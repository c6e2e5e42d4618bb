from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from brokerage.core.datetime_utils import utc_now


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    type_annotation_map: dict[type, Any] = {}


class TimestampMixin:
    """Mixin that adds created_at/updated_at timestamps to models.

    Timestamps are assigned in Python so the value is known before flush;
    batch settings use created_at as part of their lookup key.
    """

    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class SoftDeleteMixin:
    """Mixin for records that are hidden rather than removed."""

    deleted_at: Mapped[datetime | None] = mapped_column(default=None)


def not_deleted(model: type[SoftDeleteMixin]) -> ColumnElement[bool]:
    """Filter clause excluding soft-deleted rows."""
    return model.deleted_at.is_(None)
