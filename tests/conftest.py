"""Shared fixtures: a throwaway SQLite database per test and two registered users."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from backend import database
from backend.database import build_engine
from backend.identity import register_user
from backend.models import Base
from tests.helpers import ALICE, BOB


@pytest_asyncio.fixture
async def store_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Point the store at a fresh database file for the duration of a test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    previous = database.engine
    database.configure(engine)
    yield engine
    database.configure(previous)
    await engine.dispose()


@pytest_asyncio.fixture
async def users(store_engine: AsyncEngine) -> tuple[str, str]:
    await register_user(ALICE, email="alice@example.com")
    await register_user(BOB, email="bob@example.com")
    return ALICE, BOB
