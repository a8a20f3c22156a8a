"""SQLAlchemy ORM models for the 10xCards database."""

from backend.models.base import Base, OwnedMixin
from backend.models.flashcard import Flashcard, FlashcardSource
from backend.models.generation import Generation
from backend.models.generation_error_log import GenerationErrorLog
from backend.models.user import User

__all__ = [
    "Base",
    "Flashcard",
    "FlashcardSource",
    "Generation",
    "GenerationErrorLog",
    "OwnedMixin",
    "User",
]
