"""Flashcard CRUD.

Cards are created alongside a generation (AI-sourced) or on their own
(manual) and may be edited or deleted by their owner at any time.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from backend.errors import IntegrityViolationError, NotFoundError
from backend.models.flashcard import Flashcard, FlashcardSource
from backend.models.generation import Generation
from backend.security.policy import Operation
from backend.store._common import atomic, current_caller, deny_anonymous

logger = logging.getLogger(__name__)


@dataclass
class FlashcardDraft:
    """Content of a card that is about to be created."""

    front: str
    back: str
    source: str = FlashcardSource.MANUAL


async def _require_generation(db: AsyncSession, generation_id: int | None) -> None:
    # The caller cannot link to a generation they cannot see; that is
    # reported the same way as a generation that does not exist.
    if generation_id is None:
        return
    if await db.get(Generation, generation_id) is None:
        raise IntegrityViolationError(f"generation {generation_id} does not exist")


async def create_flashcard(
    db: AsyncSession,
    *,
    front: str,
    back: str,
    source: str,
    owner: str,
    generation_id: int | None = None,
) -> Flashcard:
    """Create one card.

    Raises:
        ValidationError: front over 200 or back over 500 characters, or an
            unknown source.
        IntegrityViolationError: ``generation_id`` does not refer to one of
            the caller's generations.
        AuthorizationError: ``owner`` is not the caller.
    """
    cards = await create_flashcards(
        db,
        owner=owner,
        cards=[FlashcardDraft(front=front, back=back, source=source)],
        generation_id=generation_id,
    )
    return cards[0]


async def create_flashcards(
    db: AsyncSession,
    *,
    owner: str,
    cards: list[FlashcardDraft],
    generation_id: int | None = None,
) -> list[Flashcard]:
    """Create several cards in one transaction; either all are stored or none."""
    deny_anonymous(db, Operation.INSERT, Flashcard.__tablename__)
    async with atomic(db):
        await _require_generation(db, generation_id)
        created = [
            Flashcard(
                front=draft.front,
                back=draft.back,
                source=draft.source,
                user_id=owner,
                generation_id=generation_id,
            )
            for draft in cards
        ]
        db.add_all(created)

    logger.info(
        "Created %d flashcard(s)%s",
        len(created),
        f" from generation {generation_id}" if generation_id is not None else "",
    )
    return created


async def get_flashcard(db: AsyncSession, flashcard_id: int) -> Flashcard:
    card = await db.get(Flashcard, flashcard_id, populate_existing=True)
    if card is None:
        raise NotFoundError("flashcard", flashcard_id)
    return card


async def update_flashcard(
    db: AsyncSession,
    flashcard_id: int,
    *,
    owner: str,
    front: str | None = None,
    back: str | None = None,
    source: str | None = None,
) -> Flashcard:
    """Edit a card. ``updated_at`` is assigned by the store, never by the caller."""
    deny_anonymous(db, Operation.UPDATE, Flashcard.__tablename__)
    async with atomic(db):
        card = await get_flashcard(db, flashcard_id)
        card.user_id = owner
        if front is not None:
            card.front = front
        if back is not None:
            card.back = back
        if source is not None:
            card.source = source
        # an update with nothing to change still counts as a modification
        flag_modified(card, "updated_at")
    return card


async def delete_flashcard(db: AsyncSession, flashcard_id: int) -> None:
    deny_anonymous(db, Operation.DELETE, Flashcard.__tablename__)
    async with atomic(db):
        card = await get_flashcard(db, flashcard_id)
        await db.delete(card)
    logger.info("Deleted flashcard %d", flashcard_id)


async def list_flashcards(db: AsyncSession) -> list[Flashcard]:
    """All of the caller's cards, oldest first."""
    stmt = (
        select(Flashcard)
        .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
        .execution_options(populate_existing=True)
    )
    cards = list((await db.execute(stmt)).scalars().all())
    logger.debug("Listed %d flashcards for %s", len(cards), current_caller(db).masked_id)
    return cards


async def list_flashcards_by_generation(db: AsyncSession, generation_id: int) -> list[Flashcard]:
    """The caller's cards produced by one generation.

    An unknown or foreign generation yields an empty list, like any other
    filtered read.
    """
    stmt = (
        select(Flashcard)
        .where(Flashcard.generation_id == generation_id)
        .order_by(Flashcard.id.asc())
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())
