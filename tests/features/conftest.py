"""Shared fixtures for BDD feature tests.

Steps drive coroutines with :func:`asyncio.run`, so each call runs on a
fresh event loop. The engine uses :class:`~sqlalchemy.pool.NullPool` so no
connection outlives the loop that opened it.
"""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from chronologicon.timeline.storage import init_timeline_storage
from chronologicon.timeline.store import EventStore, JobStore

if typ.TYPE_CHECKING:
    from pathlib import Path


class TimelineStores(typ.NamedTuple):
    """Stores sharing one feature-test database."""

    events: EventStore
    jobs: JobStore


@pytest.fixture
def timeline_stores(tmp_path: Path) -> typ.Iterator[TimelineStores]:
    """Yield event and job stores over a freshly initialised sqlite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'features.db'}"
    engine = create_async_engine(url, poolclass=NullPool)
    asyncio.run(init_timeline_storage(engine))
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield TimelineStores(EventStore(factory), JobStore(factory))
    finally:
        asyncio.run(engine.dispose())
