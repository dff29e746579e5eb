"""Ingest an event file in-process and print the final job status."""

from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path

import msgspec
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from chronologicon.logging import configure_logging
from chronologicon.timeline.resolver import ForwardReferenceResolver
from chronologicon.timeline.storage import JobStatus, init_timeline_storage
from chronologicon.timeline.store import EventStore, JobStore

_DATABASE_URL_ENV = "CHRONOLOGICON_DATABASE_URL"


async def ingest_file(
    database_url: str, file_path: Path, *, create_schema: bool = False
) -> bytes:
    """Run one ingestion job against ``database_url`` and return its status JSON."""
    engine = create_async_engine(database_url)
    try:
        if create_schema:
            await init_timeline_storage(engine)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        job_store = JobStore(session_factory)
        job_id = await job_store.create_job(str(file_path))
        resolver = ForwardReferenceResolver(EventStore(session_factory), job_store)
        await resolver.process_file(job_id, str(file_path))
        view = await job_store.get_job(job_id)
    finally:
        await engine.dispose()
    return msgspec.json.encode(view)


def main(argv: list[str] | None = None) -> int:
    """Ingest a file and report the job.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 when the job COMPLETED, 1 otherwise.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("file", type=Path, help="Pipe-delimited event file")
    parser.add_argument(
        "--database-url",
        default=os.environ.get(_DATABASE_URL_ENV),
        help=f"SQLAlchemy async URL (default: ${_DATABASE_URL_ENV})",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create the event and job tables before ingesting",
    )
    parser.add_argument("--log-level", default="WARNING", help="femtologging level")
    args = parser.parse_args(argv)

    if not args.database_url:
        parser.error(f"--database-url or ${_DATABASE_URL_ENV} is required")

    configure_logging(args.log_level)
    payload = asyncio.run(
        ingest_file(args.database_url, args.file, create_schema=args.create_schema)
    )
    print(payload.decode())

    status = msgspec.json.decode(payload)["status"]
    return 0 if status == JobStatus.COMPLETED else 1


if __name__ == "__main__":
    raise SystemExit(main())
