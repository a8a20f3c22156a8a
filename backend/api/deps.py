"""FastAPI dependencies resolving the caller and its guarded session."""

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings
from backend.database import caller_session
from backend.security.context import CallerContext


def get_caller(request: Request) -> CallerContext:
    """Identity asserted by the upstream identity gateway; no header means anonymous."""
    user_id = request.headers.get(settings.identity_header)
    if user_id is None:
        return CallerContext.anonymous()
    if not user_id.strip():
        raise HTTPException(status_code=400, detail=f"Empty {settings.identity_header} header")
    return CallerContext.authenticated(user_id.strip())


async def get_session(caller: CallerContext = Depends(get_caller)) -> AsyncIterator[AsyncSession]:
    """Yield a database session acting as the request's caller."""
    async with caller_session(caller) as session:
        yield session
