"""Hooks for the external identity provider.

The provider owns accounts and credentials. It calls these when an account is
created or removed so that ownership foreign keys have something to point
at. Removing a user removes every row they own (``ON DELETE CASCADE``).
"""

import logging

from sqlalchemy import select

from backend.database import caller_session
from backend.errors import IntegrityViolationError, NotFoundError
from backend.models.user import User
from backend.store._common import atomic

logger = logging.getLogger(__name__)


async def register_user(user_id: str, email: str | None = None) -> User:
    """Create the local record for a provider account; idempotent on ``user_id``."""
    async with caller_session() as db:
        existing = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if existing:
            return existing

        if email is not None:
            taken = (await db.execute(select(User.id).where(User.email == email))).first()
            if taken:
                raise IntegrityViolationError(f"email {email} is already registered")

        user = User(id=user_id, email=email)
        try:
            async with atomic(db):
                db.add(user)
        except IntegrityViolationError:
            # a concurrent registration of the same account got there first
            existing = await db.get(User, user_id)
            if existing is None:
                raise
            return existing

    logger.info("Registered user %s", user_id[:8])
    return user


async def delete_user(user_id: str) -> None:
    """Remove a provider account and, by cascade, everything it owns."""
    async with caller_session() as db:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        async with atomic(db):
            await db.delete(user)

    logger.info("Deleted user %s and all owned rows", user_id[:8])
