"""Declarative base and shared column mixins."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from backend.config import utcnow


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class OwnedMixin:
    """Marks a model as owned by exactly one user.

    Every mapped subclass is covered by the row-level access gate in
    ``backend.security``: sessions only ever see and write rows whose
    ``user_id`` matches the caller. Deleting the user deletes the row.
    """

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
