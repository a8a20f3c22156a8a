"""API routes for generation sessions."""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.deps import get_caller, get_session
from backend.api.schemas import (
    FlashcardResponse,
    GenerationAcceptedCountsRequest,
    GenerationCreateRequest,
    GenerationResponse,
)
from backend.security.context import CallerContext
from backend.store import (
    create_generation,
    delete_generation,
    get_generation,
    list_flashcards_by_generation,
    list_generations,
    update_generation_accepted_counts,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generations", tags=["generations"])


@router.post("", response_model=GenerationResponse, status_code=201)
async def generation_create(
    request: GenerationCreateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_session),
) -> GenerationResponse:
    """Record a completed generation run for the caller."""
    generation = await create_generation(db, owner=caller.user_id, **request.model_dump())
    return GenerationResponse.model_validate(generation)


@router.get("", response_model=list[GenerationResponse])
async def generation_list(db: AsyncSession = Depends(get_session)) -> list[GenerationResponse]:
    generations = await list_generations(db)
    return [GenerationResponse.model_validate(g) for g in generations]


@router.get("/{generation_id}", response_model=GenerationResponse)
async def generation_get(
    generation_id: int,
    db: AsyncSession = Depends(get_session),
) -> GenerationResponse:
    return GenerationResponse.model_validate(await get_generation(db, generation_id))


@router.patch("/{generation_id}", response_model=GenerationResponse)
async def generation_update_counts(
    generation_id: int,
    request: GenerationAcceptedCountsRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_session),
) -> GenerationResponse:
    """Record how many of the generated candidates were accepted."""
    generation = await update_generation_accepted_counts(
        db,
        generation_id,
        owner=caller.user_id,
        accepted_unedited=request.accepted_unedited_count,
        accepted_edited=request.accepted_edited_count,
    )
    return GenerationResponse.model_validate(generation)


@router.delete("/{generation_id}", status_code=204)
async def generation_delete(
    generation_id: int,
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Delete a generation; its flashcards are kept and unlinked."""
    await delete_generation(db, generation_id)
    return Response(status_code=204)


@router.get("/{generation_id}/flashcards", response_model=list[FlashcardResponse])
async def generation_flashcards(
    generation_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[FlashcardResponse]:
    cards = await list_flashcards_by_generation(db, generation_id)
    return [FlashcardResponse.model_validate(c) for c in cards]
