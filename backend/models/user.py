from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.config import utcnow
from backend.models.base import Base


class User(Base):
    """Local mirror of an identity-provider account.

    Only the identity id matters here; it is the foreign key every owned row
    points at. Owned rows go away with the user through ``ON DELETE CASCADE``.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
