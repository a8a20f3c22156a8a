"""FastAPI application entry point and configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import literal, select

from backend import database
from backend.api.error_logs_router import router as error_logs_router
from backend.api.flashcards_router import router as flashcards_router
from backend.api.generations_router import router as generations_router
from backend.config import settings
from backend.database import caller_session
from backend.errors import (
    AuthorizationError,
    IntegrityViolationError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from backend.models import Base

STATUS_BY_ERROR: dict[type[StoreError], int] = {
    ValidationError: 422,
    AuthorizationError: 403,
    NotFoundError: 404,
    IntegrityViolationError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize database on startup and cleanup on shutdown."""
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await database.engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Owner-isolated storage for flashcards and AI generation sessions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generations_router)
app.include_router(flashcards_router)
app.include_router(error_logs_router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Translate store errors into HTTP responses."""
    status = next(
        (code for cls, code in STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400
    )
    body: dict[str, str] = {"detail": str(exc), "error": exc.kind}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
        body["constraint"] = exc.constraint
    return JSONResponse(status_code=status, content=body)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Check database connectivity and return status."""
    async with caller_session() as session:
        await session.execute(select(literal(1)))
    return {"status": "ok"}
