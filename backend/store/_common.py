"""Transaction helpers shared by the store modules."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import IntegrityViolationError
from backend.security.context import CallerContext
from backend.security.guard import caller_of
from backend.security.policy import Operation, policy

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[None]:
    """Commit the enclosed writes together or roll all of them back.

    Database integrity failures surface as ``IntegrityViolationError``; every
    other error propagates unchanged after the rollback.
    """
    try:
        yield
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Integrity violation: %s", exc.orig)
        raise IntegrityViolationError(str(exc.orig)) from exc
    except Exception:
        await db.rollback()
        raise


def current_caller(db: AsyncSession) -> CallerContext:
    return caller_of(db.sync_session)


def deny_anonymous(db: AsyncSession, operation: Operation, table: str) -> None:
    """Reject writes by unauthenticated callers before any row is looked up.

    Without this an anonymous update or delete would report the row as
    missing, since nothing is visible to it.
    """
    caller = current_caller(db)
    if not caller.is_authenticated:
        policy.check(caller, operation, table)
