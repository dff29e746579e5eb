"""Typed records exchanged between the store, the algorithms and the API.

Field names follow Python conventions; the JSON names used by API clients
are declared with ``rename`` or ``msgspec.field(name=...)`` so
``msgspec.to_builtins`` produces the public payload directly.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003 - msgspec resolves annotations at runtime
import typing as typ

import msgspec


class EventRecord(msgspec.Struct, frozen=True, kw_only=True):
    """A validated event, as produced by the parser and stored by the store.

    Attributes
    ----------
    event_id : str
        Lowercase canonical UUID.
    parent_event_id : str | None
        Lowercase canonical UUID of the parent, ``None`` for roots.
    metadata : dict[str, Any]
        Provenance: ``originalSourceFile``, ``lineNumber``, ``researchValue``.

    """

    event_id: str
    event_name: str
    description: str
    start_date: dt.datetime
    end_date: dt.datetime
    duration_minutes: int
    parent_event_id: str | None = None
    metadata: dict[str, typ.Any] = msgspec.field(default_factory=dict)


class EventSummary(msgspec.Struct, frozen=True, kw_only=True):
    """Identity and span of an event, used by the window analytics."""

    event_id: str
    event_name: str
    start_date: dt.datetime
    end_date: dt.datetime


class OverlapPair(msgspec.Struct, frozen=True, kw_only=True):
    """Two events whose spans intersect for a positive number of minutes."""

    events: tuple[EventSummary, EventSummary] = msgspec.field(
        name="overlappingEventPairs"
    )
    overlap_duration_minutes: int


class PrecedingEvent(msgspec.Struct, frozen=True, kw_only=True):
    """Event ending where a gap starts."""

    event_id: str
    event_name: str
    end_date: dt.datetime


class SucceedingEvent(msgspec.Struct, frozen=True, kw_only=True):
    """Event starting where a gap ends."""

    event_id: str
    event_name: str
    start_date: dt.datetime


class TemporalGap(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """An uncovered interval between two consecutive events."""

    duration_minutes: int
    start_of_gap: dt.datetime
    end_of_gap: dt.datetime
    preceding_event: PrecedingEvent
    succeeding_event: SucceedingEvent


class GapReport(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Result of a temporal gap search; ``largest_gap`` is None when none exists."""

    largest_gap: TemporalGap | None
    message: str


class SubtreeNode(msgspec.Struct, frozen=True, kw_only=True):
    """An event within a descendant subtree, as seen by the path finder."""

    event_id: str
    event_name: str
    duration_minutes: int
    parent_event_id: str | None = None


class PathStep(msgspec.Struct, frozen=True, kw_only=True):
    """One event on an influence path."""

    event_id: str
    event_name: str
    duration_minutes: int


class InfluencePath(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Minimum cumulative-duration path from a source to a target event."""

    source_event_id: str
    target_event_id: str
    shortest_path: list[PathStep]
    total_duration_minutes: int
    message: str

    @property
    def found(self) -> bool:
        """Return True when a path was found."""
        return bool(self.shortest_path)


class EventView(msgspec.Struct, frozen=True, kw_only=True):
    """Event as listed by searches."""

    event_id: str
    event_name: str
    description: str
    start_date: dt.datetime
    end_date: dt.datetime
    duration_minutes: int
    parent_event_id: str | None


class SearchPage(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """One page of event search results."""

    total_events: int
    page: int
    limit: int
    events: list[EventView]


class JobStatusView(
    msgspec.Struct, frozen=True, kw_only=True, rename="camel", omit_defaults=True
):
    """Externally visible state of an ingestion job.

    ``start_time`` and ``end_time`` are only populated once the job has
    reached COMPLETED or FAILED.
    """

    job_id: str
    status: str
    processed_lines: int
    error_lines: int
    total_lines: int
    orphaned_events: int
    errors: list[str]
    start_time: dt.datetime | None = None
    end_time: dt.datetime | None = None


class JobCounts(msgspec.Struct, frozen=True, kw_only=True):
    """Counters stamped onto a job when it is finalised."""

    total_lines: int
    processed_lines: int
    error_lines: int
    orphaned_events: int = 0
