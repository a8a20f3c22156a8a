"""Builders for rows used across the store tests."""

from contextlib import AbstractAsyncContextManager

from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import caller_session
from backend.models.flashcard import Flashcard
from backend.models.generation import Generation
from backend.models.generation_error_log import GenerationErrorLog
from backend.security.context import CallerContext
from backend.store import create_flashcard, create_generation, log_generation_error

ALICE = "0b7d9c52-6a4e-4f0e-9a51-6d1f3a2c0a11"
BOB = "5e2f8a17-1c3b-4d6e-8f90-b0b0b0b0b0b0"


def as_user(user_id: str) -> AbstractAsyncContextManager[AsyncSession]:
    return caller_session(CallerContext.authenticated(user_id))


def as_anonymous() -> AbstractAsyncContextManager[AsyncSession]:
    return caller_session(CallerContext.anonymous())


async def make_generation(owner: str, source_text_length: int = 2000, **overrides) -> Generation:
    fields = {
        "model": "openai/gpt-4o-mini",
        "generated_count": 5,
        "source_text_hash": "9f86d081884c7d659a2feaa0c55ad015",
        "source_text_length": source_text_length,
        "generation_duration": 1800,
    }
    fields.update(overrides)
    async with as_user(owner) as db:
        return await create_generation(db, owner=owner, **fields)


async def make_flashcard(
    owner: str,
    front: str = "What is the capital of France?",
    back: str = "Paris",
    source: str = "manual",
    generation_id: int | None = None,
) -> Flashcard:
    async with as_user(owner) as db:
        return await create_flashcard(
            db, front=front, back=back, source=source, owner=owner, generation_id=generation_id
        )


async def make_error_log(owner: str, **overrides) -> GenerationErrorLog:
    fields = {
        "model": "openai/gpt-4o-mini",
        "source_text_hash": "9f86d081884c7d659a2feaa0c55ad015",
        "source_text_length": 2000,
        "error_code": "RATE_LIMITED",
        "error_message": "429 Too Many Requests",
    }
    fields.update(overrides)
    async with as_user(owner) as db:
        return await log_generation_error(db, owner=owner, **fields)
