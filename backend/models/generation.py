"""AI generation session model."""

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from backend.models.base import Base, OwnedMixin, TimestampMixin
from backend.models.validators import (
    SOURCE_TEXT_MAX_LENGTH,
    SOURCE_TEXT_MIN_LENGTH,
    require_count,
    require_source_text_length,
    require_text,
)


class Generation(Base, OwnedMixin, TimestampMixin):
    """One AI-assisted extraction run and how many of its candidates were accepted."""

    __tablename__ = "generations"
    __table_args__ = (
        CheckConstraint(
            f"source_text_length BETWEEN {SOURCE_TEXT_MIN_LENGTH} AND {SOURCE_TEXT_MAX_LENGTH}",
            name="ck_generations_source_text_length",
        ),
        Index("idx_generations_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    model: Mapped[str] = mapped_column(String, nullable=False)
    generated_count: Mapped[int] = mapped_column(Integer, nullable=False)
    accepted_unedited_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    accepted_edited_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source_text_hash: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    generation_duration: Mapped[int] = mapped_column(Integer, nullable=False)  # milliseconds

    flashcards: Mapped[list["Flashcard"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="generation", passive_deletes=True
    )

    @validates("model", "source_text_hash")
    def _validate_text(self, key: str, value: str) -> str:
        return require_text(key, value)

    @validates("generated_count", "generation_duration")
    def _validate_count(self, key: str, value: int) -> int:
        return require_count(key, value)

    @validates("accepted_unedited_count", "accepted_edited_count")
    def _validate_accepted(self, key: str, value: int | None) -> int | None:
        return require_count(key, value, nullable=True)

    @validates("source_text_length")
    def _validate_length(self, key: str, value: int) -> int:
        return require_source_text_length(key, value)

    @property
    def acceptance_rate(self) -> float | None:
        """Share of generated candidates the user kept, edited or not."""
        if self.accepted_unedited_count is None and self.accepted_edited_count is None:
            return None
        if not self.generated_count:
            return None
        accepted = (self.accepted_unedited_count or 0) + (self.accepted_edited_count or 0)
        return accepted / self.generated_count
