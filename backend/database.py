"""Database engine and guarded session management.

Owned rows are only reachable through sessions opened with a caller; there is
no plain session factory.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from backend.config import settings
from backend.security.context import ANONYMOUS, CallerContext
from backend.security.guard import CALLER_KEY, GuardedSession


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ANN001
    # SQLite ignores ON DELETE CASCADE / SET NULL unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with foreign-key enforcement switched on."""
    engine = create_async_engine(url, echo=echo)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        sync_session_class=GuardedSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.database_url, echo=settings.debug)
_session_factory = build_sessionmaker(engine)


def configure(bind: AsyncEngine) -> None:
    """Point the module-level session factory at another engine (tests, CLI)."""
    global engine, _session_factory
    engine = bind
    _session_factory = build_sessionmaker(bind)


@asynccontextmanager
async def caller_session(caller: CallerContext = ANONYMOUS) -> AsyncIterator[AsyncSession]:
    """Open a session that acts as ``caller`` for every statement and flush."""
    async with _session_factory(info={CALLER_KEY: caller}) as session:
        yield session
