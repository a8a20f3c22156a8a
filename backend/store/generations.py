"""Generation sessions: created after a successful AI run, then read-mostly."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import NotFoundError
from backend.models.generation import Generation
from backend.security.policy import Operation
from backend.store._common import atomic, current_caller, deny_anonymous

logger = logging.getLogger(__name__)


async def create_generation(
    db: AsyncSession,
    *,
    owner: str,
    model: str,
    generated_count: int,
    source_text_hash: str,
    source_text_length: int,
    generation_duration: int,
    accepted_unedited_count: int | None = None,
    accepted_edited_count: int | None = None,
) -> Generation:
    """Record a completed generation run.

    Raises:
        ValidationError: a field is out of range (e.g. source text length
            outside 1000-10000).
        AuthorizationError: ``owner`` is not the caller.
    """
    async with atomic(db):
        generation = Generation(
            user_id=owner,
            model=model,
            generated_count=generated_count,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            generation_duration=generation_duration,
            accepted_unedited_count=accepted_unedited_count,
            accepted_edited_count=accepted_edited_count,
        )
        db.add(generation)

    logger.info(
        "Created generation %d (%s, %d candidates)",
        generation.id,
        generation.model,
        generation.generated_count,
    )
    return generation


async def get_generation(db: AsyncSession, generation_id: int) -> Generation:
    """Return one generation; absent and not-owned look the same."""
    generation = await db.get(Generation, generation_id, populate_existing=True)
    if generation is None:
        raise NotFoundError("generation", generation_id)
    return generation


async def list_generations(db: AsyncSession) -> list[Generation]:
    stmt = (
        select(Generation)
        .order_by(Generation.created_at.desc(), Generation.id.desc())
        .execution_options(populate_existing=True)
    )
    generations = list((await db.execute(stmt)).scalars().all())
    logger.debug(
        "Listed %d generations for %s", len(generations), current_caller(db).masked_id
    )
    return generations


async def update_generation_accepted_counts(
    db: AsyncSession,
    generation_id: int,
    *,
    owner: str,
    accepted_unedited: int | None = None,
    accepted_edited: int | None = None,
) -> Generation:
    """Record how many candidates the user accepted, as-is and after editing.

    Counts left as ``None`` keep their stored value.
    """
    deny_anonymous(db, Operation.UPDATE, Generation.__tablename__)
    async with atomic(db):
        generation = await get_generation(db, generation_id)
        generation.user_id = owner
        if accepted_unedited is not None:
            generation.accepted_unedited_count = accepted_unedited
        if accepted_edited is not None:
            generation.accepted_edited_count = accepted_edited
    return generation


async def delete_generation(db: AsyncSession, generation_id: int) -> None:
    """Delete a generation; its flashcards stay, with ``generation_id`` cleared."""
    deny_anonymous(db, Operation.DELETE, Generation.__tablename__)
    async with atomic(db):
        generation = await get_generation(db, generation_id)
        await db.delete(generation)
    logger.info("Deleted generation %d", generation_id)
