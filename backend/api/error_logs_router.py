"""API routes for generation error logs."""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.deps import get_caller, get_session
from backend.api.schemas import (
    GenerationErrorLogCreateRequest,
    GenerationErrorLogResponse,
    GenerationErrorLogUpdateRequest,
)
from backend.security.context import CallerContext
from backend.store import (
    delete_generation_error_log,
    list_generation_error_logs,
    log_generation_error,
    update_generation_error_log,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/generation-error-logs", tags=["generation-error-logs"])


@router.post("", response_model=GenerationErrorLogResponse, status_code=201)
async def error_log_create(
    request: GenerationErrorLogCreateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_session),
) -> GenerationErrorLogResponse:
    entry = await log_generation_error(db, owner=caller.user_id, **request.model_dump())
    return GenerationErrorLogResponse.model_validate(entry)


@router.get("", response_model=list[GenerationErrorLogResponse])
async def error_log_list(
    db: AsyncSession = Depends(get_session),
) -> list[GenerationErrorLogResponse]:
    entries = await list_generation_error_logs(db)
    return [GenerationErrorLogResponse.model_validate(e) for e in entries]


@router.patch("/{log_id}", response_model=GenerationErrorLogResponse)
async def error_log_update(
    log_id: int,
    request: GenerationErrorLogUpdateRequest,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_session),
) -> GenerationErrorLogResponse:
    entry = await update_generation_error_log(
        db,
        log_id,
        owner=caller.user_id,
        error_code=request.error_code,
        error_message=request.error_message,
    )
    return GenerationErrorLogResponse.model_validate(entry)


@router.delete("/{log_id}", status_code=204)
async def error_log_delete(log_id: int, db: AsyncSession = Depends(get_session)) -> Response:
    await delete_generation_error_log(db, log_id)
    return Response(status_code=204)
