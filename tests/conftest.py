"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from chronologicon.timeline.storage import init_timeline_storage
from chronologicon.timeline.store import EventStore, JobStore

if typ.TYPE_CHECKING:
    from pathlib import Path


def sqlite_url(tmp_path: Path) -> str:
    """Return an aiosqlite URL for a database file under ``tmp_path``."""
    return f"sqlite+aiosqlite:///{tmp_path / 'chronologicon_test.db'}"


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine and initialise the timeline tables."""
    engine = create_async_engine(sqlite_url(tmp_path))
    try:
        await init_timeline_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite."""
    engine = await _setup_sqlite(tmp_path)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def event_store(session_factory: async_sessionmaker[AsyncSession]) -> EventStore:
    """Return an event store over the test database."""
    return EventStore(session_factory)


@pytest.fixture
def job_store(session_factory: async_sessionmaker[AsyncSession]) -> JobStore:
    """Return a job store over the test database."""
    return JobStore(session_factory)
