"""Unit tests for the Dramatiq ingestion actor and its dispatcher."""

from __future__ import annotations

import asyncio
import typing as typ

from dramatiq import Message
from dramatiq.brokers.stub import StubBroker
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from chronologicon.ingestion.actor import (
    dispatch_with_actor,
    get_session_factory,
    ingest_file_job,
)
from chronologicon.timeline.storage import init_timeline_storage
from chronologicon.timeline.store import JobStore
from tests.helpers.records import CHILD_ID, ROOT_ID, event_line, write_event_file

if typ.TYPE_CHECKING:
    from pathlib import Path

    from chronologicon.timeline.models import JobStatusView


def _sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'actor.db'}"


async def _prepare_job(database_url: str, file_path: str) -> str:
    engine = create_async_engine(database_url, poolclass=NullPool)
    try:
        await init_timeline_storage(engine)
        jobs = JobStore(async_sessionmaker(engine, expire_on_commit=False))
        return await jobs.create_job(file_path)
    finally:
        await engine.dispose()


async def _read_job(database_url: str, job_id: str) -> JobStatusView | None:
    engine = create_async_engine(database_url, poolclass=NullPool)
    try:
        jobs = JobStore(async_sessionmaker(engine, expire_on_commit=False))
        return await jobs.get_job(job_id)
    finally:
        await engine.dispose()


def test_actor_is_bound_to_the_stub_broker() -> None:
    """Under pytest the actor never needs a running message broker."""
    assert isinstance(ingest_file_job.broker, StubBroker)


def test_session_factories_are_cached_per_url(tmp_path: Path) -> None:
    """Repeated lookups reuse one engine per database URL."""
    url = _sqlite_url(tmp_path)

    assert get_session_factory(url) is get_session_factory(url)
    assert get_session_factory(url) is not get_session_factory(f"{url}-other")


def test_actor_ingests_the_file(tmp_path: Path) -> None:
    """Calling the actor runs the whole job and returns its final status."""
    url = _sqlite_url(tmp_path)
    path = write_event_file(
        tmp_path / "events.txt",
        [
            event_line(
                CHILD_ID,
                "child",
                "2023-01-01T00:10:00Z",
                "2023-01-01T00:20:00Z",
                ROOT_ID,
            ),
            event_line(ROOT_ID, "root", "2023-01-01T00:00:00Z", "2023-01-01T01:00:00Z"),
        ],
    )
    job_id = asyncio.run(_prepare_job(url, str(path)))

    result = ingest_file_job(url, job_id, str(path))

    assert result == "COMPLETED"
    view = asyncio.run(_read_job(url, job_id))
    assert view is not None
    assert (view.processed_lines, view.error_lines, view.orphaned_events) == (2, 0, 0)


def test_dispatcher_enqueues_a_message(tmp_path: Path) -> None:
    """The dispatcher sends the database URL, job ID and path."""
    broker = typ.cast("StubBroker", ingest_file_job.broker)
    broker.flush_all()
    url = _sqlite_url(tmp_path)

    dispatch_with_actor(url)("job-1", "/data/events.txt")

    queue = broker.queues[ingest_file_job.queue_name]
    assert queue.qsize() == 1
    message = Message.decode(queue.get_nowait())
    assert list(message.args) == [url, "job-1", "/data/events.txt"]
