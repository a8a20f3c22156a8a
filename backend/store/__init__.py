"""Store operations over owned rows.

Every function takes a session from ``backend.database.caller_session`` as
its first argument and acts as that session's caller.
"""

from backend.store.error_logs import (
    delete_generation_error_log,
    get_generation_error_log,
    list_generation_error_logs,
    log_generation_error,
    update_generation_error_log,
)
from backend.store.flashcards import (
    FlashcardDraft,
    create_flashcard,
    create_flashcards,
    delete_flashcard,
    get_flashcard,
    list_flashcards,
    list_flashcards_by_generation,
    update_flashcard,
)
from backend.store.generations import (
    create_generation,
    delete_generation,
    get_generation,
    list_generations,
    update_generation_accepted_counts,
)

__all__ = [
    "FlashcardDraft",
    "create_flashcard",
    "create_flashcards",
    "create_generation",
    "delete_flashcard",
    "delete_generation",
    "delete_generation_error_log",
    "get_flashcard",
    "get_generation",
    "get_generation_error_log",
    "list_flashcards",
    "list_flashcards_by_generation",
    "list_generation_error_logs",
    "list_generations",
    "log_generation_error",
    "update_flashcard",
    "update_generation_accepted_counts",
    "update_generation_error_log",
]
