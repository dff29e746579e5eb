"""Timeline layer: record parsing, event storage and hierarchy assembly."""

from __future__ import annotations

from .errors import (
    FatalStreamError,
    JobFinalizedError,
    JobNotFoundError,
    OrphanedEventError,
    RecordParseError,
    RecordParseReason,
)
from .hierarchy import Timeline, TimelineNode, assemble_timeline
from .models import EventRecord, JobCounts, JobStatusView
from .parser import parse_record
from .resolver import ForwardReferenceResolver
from .service import TimelineService
from .storage import (
    HistoricalEvent,
    IngestionJob,
    JobStatus,
    StagingEvent,
    init_timeline_storage,
)
from .store import CommitOutcome, EventStore, JobStore, SearchParams, SortField

__all__ = [
    "CommitOutcome",
    "EventRecord",
    "EventStore",
    "FatalStreamError",
    "ForwardReferenceResolver",
    "HistoricalEvent",
    "IngestionJob",
    "JobCounts",
    "JobFinalizedError",
    "JobNotFoundError",
    "JobStatus",
    "JobStatusView",
    "JobStore",
    "OrphanedEventError",
    "RecordParseError",
    "RecordParseReason",
    "SearchParams",
    "SortField",
    "StagingEvent",
    "Timeline",
    "TimelineService",
    "TimelineNode",
    "assemble_timeline",
    "init_timeline_storage",
    "parse_record",
]
