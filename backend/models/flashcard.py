from enum import StrEnum

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from backend.errors import ValidationError
from backend.models.base import Base, OwnedMixin, TimestampMixin
from backend.models.validators import require_text

FRONT_MAX_LENGTH = 200
BACK_MAX_LENGTH = 500


class FlashcardSource(StrEnum):
    AI_FULL = "ai-full"  # generated and accepted as-is
    AI_EDITED = "ai-edited"  # generated, edited before acceptance
    MANUAL = "manual"


class Flashcard(Base, OwnedMixin, TimestampMixin):
    """A front/back learning card.

    ``updated_at`` is stamped by the store on every update; whatever the
    caller assigns to it is overwritten.
    """

    __tablename__ = "flashcards"
    __table_args__ = (
        CheckConstraint(
            "source IN ('ai-full', 'ai-edited', 'manual')", name="ck_flashcards_source"
        ),
        Index("idx_flashcards_user_id", "user_id"),
        Index("idx_flashcards_generation_id", "generation_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    front: Mapped[str] = mapped_column(String(FRONT_MAX_LENGTH), nullable=False)
    back: Mapped[str] = mapped_column(String(BACK_MAX_LENGTH), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    generation_id: Mapped[int | None] = mapped_column(
        ForeignKey("generations.id", ondelete="SET NULL"), nullable=True
    )

    generation: Mapped["Generation"] = relationship(back_populates="flashcards")  # type: ignore[name-defined] # noqa: F821

    @validates("front")
    def _validate_front(self, key: str, value: str) -> str:
        return require_text(key, value, FRONT_MAX_LENGTH)

    @validates("back")
    def _validate_back(self, key: str, value: str) -> str:
        return require_text(key, value, BACK_MAX_LENGTH)

    @validates("source")
    def _validate_source(self, key: str, value: str) -> str:
        try:
            return FlashcardSource(value).value
        except ValueError:
            allowed = ", ".join(s.value for s in FlashcardSource)
            raise ValidationError(key, "choice", f"source must be one of: {allowed}") from None
