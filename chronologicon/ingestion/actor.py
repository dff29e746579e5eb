"""Dramatiq actor running one ingestion job per submitted file.

Usage
-----
Queue a file for a job created beforehand:

>>> ingest_file_job.send(
...     "postgresql+asyncpg://...",
...     "5a1c2f0e-1111-4222-8333-944445555666",
...     "/data/events.txt",
... )

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from chronologicon.ingestion._broker import ensure_broker_configured
from chronologicon.timeline.resolver import ForwardReferenceResolver
from chronologicon.timeline.store import EventStore, JobStore

if typ.TYPE_CHECKING:
    from chronologicon.timeline.storage import JobStatus

SessionFactory: typ.TypeAlias = "async_sessionmaker[AsyncSession]"

# Engines and session factories are shared across actor invocations per URL.
# Each invocation runs on its own event loop, so connections are not pooled.
_ENGINE_CACHE: dict[str, AsyncEngine] = {}
_SESSION_FACTORY_CACHE: dict[str, SessionFactory] = {}
_CACHE_LOCK = threading.Lock()


def get_session_factory(database_url: str) -> SessionFactory:
    """Return the cached session factory for ``database_url``.

    Thread-safe: Dramatiq workers run actors on several threads.
    """
    with _CACHE_LOCK:
        if database_url not in _SESSION_FACTORY_CACHE:
            engine = _ENGINE_CACHE.get(database_url)
            if engine is None:
                engine = create_async_engine(database_url, poolclass=NullPool)
                _ENGINE_CACHE[database_url] = engine
            _SESSION_FACTORY_CACHE[database_url] = async_sessionmaker(
                engine, expire_on_commit=False
            )
        return _SESSION_FACTORY_CACHE[database_url]


async def run_ingestion(
    session_factory: SessionFactory, job_id: str, file_path: str
) -> JobStatus:
    """Process ``file_path`` for ``job_id`` and return the final status."""
    resolver = ForwardReferenceResolver(
        EventStore(session_factory), JobStore(session_factory)
    )
    return await resolver.process_file(job_id, file_path)


ensure_broker_configured()


@dramatiq.actor(max_retries=0)
def ingest_file_job(database_url: str, job_id: str, file_path: str) -> str:
    """Ingest one file for an existing job.

    Retries are disabled: a job that reached PROCESSING cannot be re-run
    without double-counting its lines.

    Returns
    -------
    str
        The job's final status.

    """
    session_factory = get_session_factory(database_url)
    status = asyncio.run(run_ingestion(session_factory, job_id, file_path))
    return status.value


def dispatch_with_actor(database_url: str) -> typ.Callable[[str, str], None]:
    """Return a dispatcher that enqueues jobs on :func:`ingest_file_job`."""

    def _dispatch(job_id: str, file_path: str) -> None:
        ingest_file_job.send(database_url, job_id, file_path)

    return _dispatch
