"""API routes for flashcards."""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.deps import get_caller, get_session
from backend.api.schemas import FlashcardCreateRequest, FlashcardResponse, FlashcardUpdateRequest
from backend.security.context import CallerContext
from backend.store import (
    FlashcardDraft,
    create_flashcards,
    delete_flashcard,
    get_flashcard,
    list_flashcards,
    update_flashcard,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])


@router.post("", response_model=list[FlashcardResponse], status_code=201)
async def flashcards_create(
    request: FlashcardCreateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_session),
) -> list[FlashcardResponse]:
    """Create one or more cards in a single transaction."""
    drafts = [
        FlashcardDraft(front=card.front, back=card.back, source=card.source.value)
        for card in request.flashcards
    ]
    cards = await create_flashcards(
        db, owner=caller.user_id, cards=drafts, generation_id=request.generation_id
    )
    return [FlashcardResponse.model_validate(c) for c in cards]


@router.get("", response_model=list[FlashcardResponse])
async def flashcards_list(db: AsyncSession = Depends(get_session)) -> list[FlashcardResponse]:
    cards = await list_flashcards(db)
    return [FlashcardResponse.model_validate(c) for c in cards]


@router.get("/{flashcard_id}", response_model=FlashcardResponse)
async def flashcard_get(
    flashcard_id: int,
    db: AsyncSession = Depends(get_session),
) -> FlashcardResponse:
    return FlashcardResponse.model_validate(await get_flashcard(db, flashcard_id))


@router.patch("/{flashcard_id}", response_model=FlashcardResponse)
async def flashcard_update(
    flashcard_id: int,
    request: FlashcardUpdateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_session),
) -> FlashcardResponse:
    card = await update_flashcard(
        db,
        flashcard_id,
        owner=caller.user_id,
        front=request.front,
        back=request.back,
        source=request.source.value if request.source else None,
    )
    return FlashcardResponse.model_validate(card)


@router.delete("/{flashcard_id}", status_code=204)
async def flashcard_delete(
    flashcard_id: int,
    db: AsyncSession = Depends(get_session),
) -> Response:
    await delete_flashcard(db, flashcard_id)
    return Response(status_code=204)
