"""Failed generation attempts.

Logs are normally written once and only read afterwards, but owners may
still correct or remove their own entries.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import NotFoundError
from backend.models.generation_error_log import GenerationErrorLog
from backend.security.policy import Operation
from backend.store._common import atomic, deny_anonymous

logger = logging.getLogger(__name__)


async def log_generation_error(
    db: AsyncSession,
    *,
    owner: str,
    model: str,
    source_text_hash: str,
    source_text_length: int,
    error_code: str,
    error_message: str,
) -> GenerationErrorLog:
    async with atomic(db):
        entry = GenerationErrorLog(
            user_id=owner,
            model=model,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            error_code=error_code,
            error_message=error_message,
        )
        db.add(entry)

    logger.info("Logged generation error %d (%s: %s)", entry.id, entry.model, entry.error_code)
    return entry


async def list_generation_error_logs(db: AsyncSession) -> list[GenerationErrorLog]:
    stmt = (
        select(GenerationErrorLog)
        .order_by(GenerationErrorLog.created_at.desc(), GenerationErrorLog.id.desc())
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_generation_error_log(db: AsyncSession, log_id: int) -> GenerationErrorLog:
    entry = await db.get(GenerationErrorLog, log_id, populate_existing=True)
    if entry is None:
        raise NotFoundError("generation_error_log", log_id)
    return entry


async def update_generation_error_log(
    db: AsyncSession,
    log_id: int,
    *,
    owner: str,
    error_code: str | None = None,
    error_message: str | None = None,
) -> GenerationErrorLog:
    deny_anonymous(db, Operation.UPDATE, GenerationErrorLog.__tablename__)
    async with atomic(db):
        entry = await get_generation_error_log(db, log_id)
        entry.user_id = owner
        if error_code is not None:
            entry.error_code = error_code
        if error_message is not None:
            entry.error_message = error_message
    return entry


async def delete_generation_error_log(db: AsyncSession, log_id: int) -> None:
    deny_anonymous(db, Operation.DELETE, GenerationErrorLog.__tablename__)
    async with atomic(db):
        entry = await get_generation_error_log(db, log_id)
        await db.delete(entry)
    logger.info("Deleted generation error log %d", log_id)
