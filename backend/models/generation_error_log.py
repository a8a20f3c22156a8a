from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from backend.config import utcnow
from backend.models.base import Base, OwnedMixin
from backend.models.validators import (
    SOURCE_TEXT_MAX_LENGTH,
    SOURCE_TEXT_MIN_LENGTH,
    require_source_text_length,
    require_text,
)

ERROR_CODE_MAX_LENGTH = 100


class GenerationErrorLog(Base, OwnedMixin):
    """A failed generation attempt. Written once, rarely touched afterwards."""

    __tablename__ = "generation_error_logs"
    __table_args__ = (
        CheckConstraint(
            f"source_text_length BETWEEN {SOURCE_TEXT_MIN_LENGTH} AND {SOURCE_TEXT_MAX_LENGTH}",
            name="ck_generation_error_logs_source_text_length",
        ),
        Index("idx_generation_error_logs_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    model: Mapped[str] = mapped_column(String, nullable=False)
    source_text_hash: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    error_code: Mapped[str] = mapped_column(String(ERROR_CODE_MAX_LENGTH), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    @validates("model", "source_text_hash", "error_message")
    def _validate_text(self, key: str, value: str) -> str:
        return require_text(key, value)

    @validates("error_code")
    def _validate_error_code(self, key: str, value: str) -> str:
        return require_text(key, value, ERROR_CODE_MAX_LENGTH)

    @validates("source_text_length")
    def _validate_length(self, key: str, value: int) -> int:
        return require_source_text_length(key, value)
