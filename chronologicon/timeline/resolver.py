"""Stream a record file into the event store, resolving forward references.

A job moves PENDING → PROCESSING once its file opens, then each line is
parsed and committed in order, with its outcome persisted before the next
line is read. Events whose parent is not committed yet are staged. When
the file is exhausted, staged events are promoted in repeated passes until
a pass promotes nothing, so chains of forward references of any depth
resolve. Whatever is still staged at that point is reported as orphaned.

Only failures to open or read the file, or to read or write the store, are
fatal: they mark the job FAILED, or leave it PENDING when the file never
opened.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from chronologicon.common.time import utcnow
from chronologicon.ingestion.observability import IngestionEventLogger
from chronologicon.timeline.errors import (
    FatalStreamError,
    OrphanedEventError,
    RecordParseError,
)
from chronologicon.timeline.models import JobCounts
from chronologicon.timeline.parser import parse_record
from chronologicon.timeline.store import CommitOutcome
from chronologicon.timeline.storage import JobStatus

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from chronologicon.timeline.store import EventStore, JobStore


def open_source(file_path: str) -> typ.TextIO:
    """Open ``file_path`` as UTF-8 text.

    Raises
    ------
    FatalStreamError
        If the file cannot be opened.

    """
    try:
        return Path(file_path).open(encoding="utf-8")  # noqa: SIM115 - caller closes
    except OSError as exc:
        raise FatalStreamError.unreadable(file_path, exc) from exc


def numbered_lines(
    stream: typ.Iterable[str], file_path: str
) -> cabc.Iterator[tuple[int, str]]:
    """Yield ``(line_number, line)`` pairs with newlines stripped.

    Read failures part-way through surface as :class:`FatalStreamError`.
    """
    iterator = iter(stream)
    line_number = 0
    while True:
        try:
            line = next(iterator)
        except StopIteration:
            return
        except (OSError, UnicodeDecodeError) as exc:
            raise FatalStreamError.interrupted(file_path, line_number, exc) from exc
        line_number += 1
        yield line_number, line.rstrip("\n")


@dc.dataclass(slots=True)
class _Tally:
    total_lines: int = 0
    processed_lines: int = 0
    error_lines: int = 0
    orphaned_events: int = 0

    def counts(self) -> JobCounts:
        return JobCounts(
            total_lines=self.total_lines,
            processed_lines=self.processed_lines,
            error_lines=self.error_lines,
            orphaned_events=self.orphaned_events,
        )


class ForwardReferenceResolver:
    """Drive the parser over one file and commit its events for a job."""

    def __init__(
        self,
        event_store: EventStore,
        job_store: JobStore,
        *,
        event_logger: IngestionEventLogger | None = None,
    ) -> None:
        """Store collaborators; ``event_logger`` defaults to femtologging output."""
        self._events = event_store
        self._jobs = job_store
        self._event_logger = event_logger or IngestionEventLogger()

    async def process_file(self, job_id: str, file_path: str) -> JobStatus:
        """Ingest ``file_path`` under ``job_id`` and return the job's final status."""
        started = utcnow()
        try:
            stream = open_source(file_path)
        except FatalStreamError as exc:
            await self._fail(job_id, JobStatus.PENDING, exc)
            return JobStatus.PENDING

        tally = _Tally()
        failure_status = JobStatus.PENDING
        try:
            with stream:
                await self._jobs.mark_processing(job_id)
                failure_status = JobStatus.FAILED
                self._event_logger.log_job_started(job_id=job_id, file_path=file_path)
                for line_number, line in numbered_lines(stream, file_path):
                    await self._handle_line(job_id, file_path, line_number, line, tally)

            await self._promote_to_fixed_point(job_id)
            tally.orphaned_events = await self._report_orphans(job_id)
        except FatalStreamError as exc:
            await self._fail(job_id, failure_status, exc)
            return failure_status
        except SQLAlchemyError as exc:
            await self._fail(job_id, failure_status, FatalStreamError.store_failed(exc))
            return failure_status

        counts = tally.counts()
        await self._jobs.finalize(job_id, JobStatus.COMPLETED, counts=counts)
        self._event_logger.log_job_completed(
            job_id=job_id, counts=counts, duration=utcnow() - started
        )
        return JobStatus.COMPLETED

    async def _handle_line(
        self,
        job_id: str,
        file_path: str,
        line_number: int,
        line: str,
        tally: _Tally,
    ) -> None:
        tally.total_lines = line_number
        try:
            record = parse_record(line, line_number=line_number, source_file=file_path)
        except RecordParseError as exc:
            tally.error_lines += 1
            await self._jobs.record_line_error(job_id, line_number, exc.job_message)
            self._event_logger.log_line_rejected(job_id=job_id, message=exc.job_message)
            return

        outcome = await self._events.insert_event(record)
        if outcome is CommitOutcome.PARENT_MISSING:
            await self._events.stage_event(job_id, record, line_number=line_number)

        # Staged events were parsed successfully; only their commit is deferred.
        tally.processed_lines += 1
        await self._jobs.record_line_success(job_id, line_number)

    async def _promote_to_fixed_point(self, job_id: str) -> int:
        """Promote staged events until a pass promotes nothing."""
        pass_number = 0
        total = 0
        while promoted := await self._events.promote_resolvable(job_id):
            pass_number += 1
            total += len(promoted)
            self._event_logger.log_promotion_pass(
                job_id=job_id, pass_number=pass_number, promoted=len(promoted)
            )
        return total

    async def _report_orphans(self, job_id: str) -> int:
        # An ID committed by a later line is no longer waiting on its parent.
        await self._events.discard_committed(job_id)
        staged = await self._events.staged_events(job_id)
        messages: list[str] = []
        for item in staged:
            parent_id = item.record.parent_event_id or ""
            error = OrphanedEventError(item.record.event_id, parent_id, item.line_number)
            messages.append(str(error))
            self._event_logger.log_line_rejected(job_id=job_id, message=str(error))
        await self._jobs.record_orphans(job_id, messages)
        return len(messages)

    async def _fail(
        self, job_id: str, status: JobStatus, exc: FatalStreamError
    ) -> None:
        await self._jobs.finalize(job_id, status, error=exc.job_message)
        self._event_logger.log_job_failed(job_id=job_id, status=status, error=exc)
