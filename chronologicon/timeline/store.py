"""Event and job stores backing ingestion and the insight queries.

Every public coroutine opens its own session and commits before returning,
so each call is durable on its own and read queries observe one snapshot.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from chronologicon.common.time import utcnow
from chronologicon.timeline.errors import JobFinalizedError, JobNotFoundError
from chronologicon.timeline.models import (
    EventRecord,
    EventSummary,
    EventView,
    JobStatusView,
    SearchPage,
    SubtreeNode,
)
from chronologicon.timeline.storage import (
    HistoricalEvent,
    IngestionJob,
    JobStatus,
    StagingEvent,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy import CTE, ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from chronologicon.timeline.models import JobCounts

SessionFactory: typ.TypeAlias = "async_sessionmaker[AsyncSession]"


class CommitOutcome(enum.StrEnum):
    """Result of an idempotent event insert."""

    COMMITTED = "committed"
    DUPLICATE = "duplicate"
    PARENT_MISSING = "parent_missing"

    @property
    def stored(self) -> bool:
        """Return True when the event is now present in the main store."""
        return self is not CommitOutcome.PARENT_MISSING


class SortField(enum.StrEnum):
    """Columns events may be sorted by in searches."""

    EVENT_NAME = "event_name"
    START_DATE = "start_date"
    END_DATE = "end_date"


@dc.dataclass(frozen=True, slots=True)
class SearchParams:
    """Filters, ordering and paging for :meth:`EventStore.search_events`."""

    name: str | None = None
    start_date_after: dt.datetime | None = None
    end_date_before: dt.datetime | None = None
    sort_by: SortField = SortField.START_DATE
    descending: bool = False
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        """Return the row offset of the requested page."""
        return (self.page - 1) * self.limit


@dc.dataclass(frozen=True, slots=True)
class StagedRecord:
    """A staged event together with the line it came from."""

    record: EventRecord
    line_number: int | None


def _to_record(row: HistoricalEvent | StagingEvent) -> EventRecord:
    return EventRecord(
        event_id=row.event_id,
        event_name=row.event_name,
        description=row.description,
        start_date=row.start_date,
        end_date=row.end_date,
        duration_minutes=row.duration_minutes,
        parent_event_id=row.parent_event_id,
        metadata=dict(row.metadata_ or {}),
    )


def _to_summary(row: HistoricalEvent) -> EventSummary:
    return EventSummary(
        event_id=row.event_id,
        event_name=row.event_name,
        start_date=row.start_date,
        end_date=row.end_date,
    )


def _to_view(row: HistoricalEvent) -> EventView:
    return EventView(
        event_id=row.event_id,
        event_name=row.event_name,
        description=row.description,
        start_date=row.start_date,
        end_date=row.end_date,
        duration_minutes=row.duration_minutes,
        parent_event_id=row.parent_event_id,
    )


def _new_event_row(record: EventRecord) -> HistoricalEvent:
    return HistoricalEvent(
        event_id=record.event_id,
        event_name=record.event_name,
        description=record.description,
        start_date=record.start_date,
        end_date=record.end_date,
        duration_minutes=record.duration_minutes,
        parent_event_id=record.parent_event_id,
        metadata_=dict(record.metadata),
    )


def _descendants_cte(root_id: str) -> CTE:
    """Return a recursive CTE of ``root_id`` and its transitive children."""
    base = (
        select(HistoricalEvent.event_id)
        .where(HistoricalEvent.event_id == root_id)
        .cte("descendants", recursive=True)
    )
    child = aliased(HistoricalEvent)
    return base.union(
        select(child.event_id).join(base, child.parent_event_id == base.c.event_id)
    )


def _ancestors_cte(root_id: str) -> CTE:
    """Return a recursive CTE of ``root_id`` and every ancestor above it."""
    base = (
        select(HistoricalEvent.event_id, HistoricalEvent.parent_event_id)
        .where(HistoricalEvent.event_id == root_id)
        .cte("ancestors", recursive=True)
    )
    parent = aliased(HistoricalEvent)
    return base.union(
        select(parent.event_id, parent.parent_event_id).join(
            base, parent.event_id == base.c.parent_event_id
        )
    )


def _window_predicate(start: dt.datetime, end: dt.datetime) -> ColumnElement[bool]:
    """Inclusive overlap: the event touches ``[start, end]`` at all."""
    return and_(HistoricalEvent.start_date <= end, HistoricalEvent.end_date >= start)


class EventStore:
    """Committed events, the per-job staging area and read-side queries."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Store the session factory used for every operation."""
        self._session_factory = session_factory

    async def insert_event(self, record: EventRecord) -> CommitOutcome:
        """Commit ``record`` unless it already exists or its parent is absent.

        Inserting an existing ID is a no-op reported as ``DUPLICATE``; a
        concurrent insert of the same ID by another job resolves the same
        way. ``PARENT_MISSING`` means nothing was written.
        """
        async with self._session_factory() as session:
            try:
                outcome = await self._insert(session, record)
                if outcome is CommitOutcome.COMMITTED:
                    await session.commit()
            except IntegrityError:
                await session.rollback()
                if await session.get(HistoricalEvent, record.event_id) is not None:
                    return CommitOutcome.DUPLICATE
                raise
            return outcome

    @staticmethod
    async def _insert(session: AsyncSession, record: EventRecord) -> CommitOutcome:
        if await session.get(HistoricalEvent, record.event_id) is not None:
            return CommitOutcome.DUPLICATE
        if (
            record.parent_event_id is not None
            and await session.get(HistoricalEvent, record.parent_event_id) is None
        ):
            return CommitOutcome.PARENT_MISSING
        session.add(_new_event_row(record))
        return CommitOutcome.COMMITTED

    @staticmethod
    async def _promote(session: AsyncSession, record: EventRecord) -> None:
        """Insert a staged event, tolerating a concurrent insert of the same ID."""
        if await session.get(HistoricalEvent, record.event_id) is not None:
            return
        try:
            async with session.begin_nested():
                session.add(_new_event_row(record))
                await session.flush()
        except IntegrityError:
            with session.no_autoflush:
                existing = await session.get(HistoricalEvent, record.event_id)
            if existing is None:
                raise

    async def stage_event(
        self, job_id: str, record: EventRecord, *, line_number: int | None
    ) -> None:
        """Hold ``record`` for ``job_id`` until its parent is committed."""
        if record.parent_event_id is None:
            msg = f"event {record.event_id} has no parent to wait for"
            raise ValueError(msg)
        async with self._session_factory() as session, session.begin():
            if await session.get(StagingEvent, (job_id, record.event_id)) is not None:
                return
            session.add(
                StagingEvent(
                    job_id=job_id,
                    event_id=record.event_id,
                    line_number=line_number,
                    event_name=record.event_name,
                    description=record.description,
                    start_date=record.start_date,
                    end_date=record.end_date,
                    duration_minutes=record.duration_minutes,
                    parent_event_id=record.parent_event_id,
                    metadata_=dict(record.metadata),
                )
            )

    async def promote_resolvable(self, job_id: str) -> list[EventRecord]:
        """Run one promotion pass for ``job_id``.

        Commits every staged event whose parent is now in the main store and
        removes it from staging. Returns the promoted events; an empty list
        means the staging area has reached its fixed point.
        """
        async with self._session_factory() as session, session.begin():
            ready = (
                await session.scalars(
                    select(StagingEvent)
                    .join(
                        HistoricalEvent,
                        HistoricalEvent.event_id == StagingEvent.parent_event_id,
                    )
                    .where(StagingEvent.job_id == job_id)
                    .order_by(StagingEvent.line_number, StagingEvent.event_id)
                )
            ).all()
            promoted: list[EventRecord] = []
            for staged in ready:
                record = _to_record(staged)
                await self._promote(session, record)
                promoted.append(record)
            if ready:
                await session.execute(
                    delete(StagingEvent).where(
                        StagingEvent.job_id == job_id,
                        StagingEvent.event_id.in_([r.event_id for r in promoted]),
                    )
                )
            return promoted

    async def discard_committed(self, job_id: str) -> int:
        """Drop staged events for ``job_id`` whose ID is already committed.

        Returns the number of staged rows removed.
        """
        committed = select(HistoricalEvent.event_id).where(
            HistoricalEvent.event_id == StagingEvent.event_id
        )
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(StagingEvent).where(
                    StagingEvent.job_id == job_id, committed.exists()
                )
            )
            return result.rowcount or 0

    async def staged_events(self, job_id: str) -> list[StagedRecord]:
        """Return the events still staged for ``job_id`` in file order."""
        async with self._session_factory() as session:
            rows = (
                await session.scalars(
                    select(StagingEvent)
                    .where(StagingEvent.job_id == job_id)
                    .order_by(StagingEvent.line_number, StagingEvent.event_id)
                )
            ).all()
            return [StagedRecord(_to_record(row), row.line_number) for row in rows]

    async def get_event(self, event_id: str) -> EventRecord | None:
        """Return the committed event with ``event_id``, if any."""
        async with self._session_factory() as session:
            row = await session.get(HistoricalEvent, event_id.lower())
            return None if row is None else _to_record(row)

    async def get_event_family(self, root_id: str) -> list[EventRecord]:
        """Return ``root_id`` with all of its ancestors and descendants."""
        root_id = root_id.lower()
        ancestors = _ancestors_cte(root_id)
        descendants = _descendants_cte(root_id)
        stmt = (
            select(HistoricalEvent)
            .where(
                or_(
                    HistoricalEvent.event_id.in_(select(ancestors.c.event_id)),
                    HistoricalEvent.event_id.in_(select(descendants.c.event_id)),
                )
            )
            .order_by(HistoricalEvent.start_date, HistoricalEvent.event_id)
        )
        async with self._session_factory() as session:
            return [_to_record(row) for row in (await session.scalars(stmt)).all()]

    async def get_descendant_subtree(self, root_id: str) -> list[SubtreeNode]:
        """Return ``root_id`` and every event reachable through child links."""
        descendants = _descendants_cte(root_id.lower())
        stmt = (
            select(HistoricalEvent)
            .where(HistoricalEvent.event_id.in_(select(descendants.c.event_id)))
            .order_by(HistoricalEvent.start_date, HistoricalEvent.event_id)
        )
        async with self._session_factory() as session:
            return [
                SubtreeNode(
                    event_id=row.event_id,
                    event_name=row.event_name,
                    duration_minutes=row.duration_minutes,
                    parent_event_id=row.parent_event_id,
                )
                for row in (await session.scalars(stmt)).all()
            ]

    async def get_events_overlapping_window(
        self, start: dt.datetime, end: dt.datetime
    ) -> list[EventSummary]:
        """Return events whose span touches ``[start, end]``."""
        stmt = select(HistoricalEvent).where(_window_predicate(start, end))
        async with self._session_factory() as session:
            return [_to_summary(row) for row in (await session.scalars(stmt)).all()]

    async def get_events_sorted_by_start(
        self, start: dt.datetime, end: dt.datetime
    ) -> list[EventSummary]:
        """Return events touching ``[start, end]`` in ascending start order."""
        stmt = (
            select(HistoricalEvent)
            .where(_window_predicate(start, end))
            .order_by(HistoricalEvent.start_date, HistoricalEvent.event_id)
        )
        async with self._session_factory() as session:
            return [_to_summary(row) for row in (await session.scalars(stmt)).all()]

    async def search_events(self, params: SearchParams) -> SearchPage:
        """Return one page of events matching ``params``."""
        filters = []
        if params.name:
            filters.append(HistoricalEvent.event_name.ilike(f"%{params.name}%"))
        if params.start_date_after is not None:
            filters.append(HistoricalEvent.start_date >= params.start_date_after)
        if params.end_date_before is not None:
            filters.append(HistoricalEvent.end_date <= params.end_date_before)

        column = getattr(HistoricalEvent, params.sort_by.value)
        ordering = column.desc() if params.descending else column.asc()

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(HistoricalEvent).where(*filters)
            )
            rows = (
                await session.scalars(
                    select(HistoricalEvent)
                    .where(*filters)
                    .order_by(ordering, HistoricalEvent.event_id)
                    .limit(params.limit)
                    .offset(params.offset)
                )
            ).all()

        return SearchPage(
            total_events=total or 0,
            page=params.page,
            limit=params.limit,
            events=[_to_view(row) for row in rows],
        )


class JobStore:
    """Durable ingestion job records.

    Each mutation commits immediately so a job's counters always reflect
    the lines handled so far, even if the process dies mid-file.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Store the session factory used for every operation."""
        self._session_factory = session_factory

    async def create_job(self, file_path: str) -> str:
        """Create a PENDING job for ``file_path`` and return its ID."""
        async with self._session_factory() as session, session.begin():
            job = IngestionJob(file_path=file_path, status=JobStatus.PENDING.value)
            session.add(job)
            await session.flush()
            return job.job_id

    async def get_job(self, job_id: str) -> JobStatusView | None:
        """Return the externally visible state of ``job_id``."""
        async with self._session_factory() as session:
            job = await session.get(IngestionJob, job_id)
            if job is None:
                return None
            terminal = JobStatus(job.status).is_terminal
            return JobStatusView(
                job_id=job.job_id,
                status=job.status,
                processed_lines=job.processed_lines,
                error_lines=job.error_lines,
                total_lines=job.total_lines,
                orphaned_events=job.orphaned_events,
                errors=list(job.errors or []),
                start_time=job.start_time if terminal else None,
                end_time=job.end_time if terminal else None,
            )

    @staticmethod
    async def _load_open(session: AsyncSession, job_id: str) -> IngestionJob:
        job = await session.get(IngestionJob, job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if JobStatus(job.status).is_terminal:
            raise JobFinalizedError(job_id, job.status)
        return job

    async def mark_processing(self, job_id: str) -> None:
        """Move ``job_id`` from PENDING to PROCESSING."""
        async with self._session_factory() as session, session.begin():
            job = await self._load_open(session, job_id)
            job.status = JobStatus.PROCESSING.value

    async def record_line_success(self, job_id: str, line_number: int) -> None:
        """Count ``line_number`` as processed."""
        async with self._session_factory() as session, session.begin():
            job = await self._load_open(session, job_id)
            job.processed_lines += 1
            job.total_lines = max(job.total_lines, line_number)

    async def record_line_error(
        self, job_id: str, line_number: int, message: str
    ) -> None:
        """Count ``line_number`` as rejected and append ``message``."""
        async with self._session_factory() as session, session.begin():
            job = await self._load_open(session, job_id)
            job.error_lines += 1
            job.total_lines = max(job.total_lines, line_number)
            job.errors = [*(job.errors or []), message]

    async def record_orphans(self, job_id: str, messages: list[str]) -> None:
        """Append one error per orphaned event and bump the orphan counter."""
        if not messages:
            return
        async with self._session_factory() as session, session.begin():
            job = await self._load_open(session, job_id)
            job.orphaned_events += len(messages)
            job.errors = [*(job.errors or []), *messages]

    async def finalize(
        self,
        job_id: str,
        status: JobStatus,
        *,
        counts: JobCounts | None = None,
        error: str | None = None,
        end_time: dt.datetime | None = None,
    ) -> None:
        """Stamp the outcome of ``job_id``.

        ``status`` is COMPLETED or FAILED for jobs that reached PROCESSING;
        a job that failed before then is stamped while remaining PENDING.
        """
        async with self._session_factory() as session, session.begin():
            job = await self._load_open(session, job_id)
            job.status = status.value
            if counts is not None:
                job.total_lines = counts.total_lines
                job.processed_lines = counts.processed_lines
                job.error_lines = counts.error_lines
                job.orphaned_events = counts.orphaned_events
            if error is not None:
                job.errors = [*(job.errors or []), error]
            job.end_time = end_time or utcnow()
