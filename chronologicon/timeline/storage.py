"""Persistence models for events, staged events and ingestion jobs."""

from __future__ import annotations

import datetime as dt
import enum
import typing as typ
import uuid

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine

from chronologicon.common.time import utcnow
from chronologicon.timeline.errors import TimezoneAwareRequiredError

UUID_LENGTH = 36


class JobStatus(enum.StrEnum):
    """Ingestion job lifecycle: PENDING → PROCESSING → COMPLETED | FAILED."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        """Return True once the job can no longer change."""
        return self in {JobStatus.COMPLETED, JobStatus.FAILED}


class Base(DeclarativeBase):
    """Declarative base for timeline tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError("event timestamps")
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class HistoricalEvent(Base):
    """A committed event in the timeline hierarchy."""

    __tablename__ = "historical_events"
    __table_args__ = (
        Index("ix_historical_events_start_date", "start_date"),
        Index("ix_historical_events_end_date", "end_date"),
        Index("ix_historical_events_parent", "parent_event_id"),
    )

    event_id: Mapped[str] = mapped_column(String(UUID_LENGTH), primary_key=True)
    event_name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text(), default="")
    start_date: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    end_date: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    duration_minutes: Mapped[int] = mapped_column(Integer)
    parent_event_id: Mapped[str | None] = mapped_column(
        ForeignKey("historical_events.event_id", ondelete="SET NULL"),
        default=None,
    )
    metadata_: Mapped[dict[str, typ.Any]] = mapped_column(
        "metadata", JSON, default=dict
    )


class StagingEvent(Base):
    """A parsed event waiting for its parent to be committed.

    Rows are scoped to the job that staged them. Promoted rows are deleted;
    rows still present after a job finishes are orphans.
    """

    __tablename__ = "staging_events"
    __table_args__ = (
        Index("ix_staging_events_job_parent", "job_id", "parent_event_id"),
    )

    job_id: Mapped[str] = mapped_column(String(UUID_LENGTH), primary_key=True)
    event_id: Mapped[str] = mapped_column(String(UUID_LENGTH), primary_key=True)
    line_number: Mapped[int | None] = mapped_column(Integer, default=None)
    event_name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text(), default="")
    start_date: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    end_date: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    duration_minutes: Mapped[int] = mapped_column(Integer)
    parent_event_id: Mapped[str] = mapped_column(String(UUID_LENGTH))
    metadata_: Mapped[dict[str, typ.Any]] = mapped_column(
        "metadata", JSON, default=dict
    )
    staged_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


class IngestionJob(Base):
    """Durable record of one file ingestion."""

    __tablename__ = "ingestion_jobs"

    job_id: Mapped[str] = mapped_column(
        String(UUID_LENGTH), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    status: Mapped[str] = mapped_column(String(20), default=JobStatus.PENDING.value)
    file_path: Mapped[str] = mapped_column(Text())
    total_lines: Mapped[int] = mapped_column(Integer, default=0)
    processed_lines: Mapped[int] = mapped_column(Integer, default=0)
    error_lines: Mapped[int] = mapped_column(Integer, default=0)
    orphaned_events: Mapped[int] = mapped_column(Integer, default=0)
    errors: Mapped[list[str]] = mapped_column(JSON, default=list)
    start_time: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    end_time: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)


async def init_timeline_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
