"""Builders for pipe-delimited event lines and in-memory event records."""

from __future__ import annotations

import datetime as dt
import typing as typ

from chronologicon.common.time import parse_iso_datetime, rounded_minutes
from chronologicon.timeline.models import EventRecord, EventSummary

if typ.TYPE_CHECKING:
    from pathlib import Path

ROOT_ID = "11111111-1111-4111-8111-111111111111"
CHILD_ID = "22222222-2222-4222-8222-222222222222"
GRANDCHILD_ID = "33333333-3333-4333-8333-333333333333"
SIBLING_ID = "44444444-4444-4444-8444-444444444444"
UNRELATED_ID = "55555555-5555-4555-8555-555555555555"
MISSING_ID = "99999999-9999-4999-8999-999999999999"

BASE = dt.datetime(2023, 1, 1, tzinfo=dt.UTC)


def event_line(  # noqa: PLR0913 - mirrors the seven record fields
    event_id: str,
    name: str,
    start: str,
    end: str,
    parent: str = "NULL",
    research_value: str = "0.5",
    description: str = "",
) -> str:
    """Return one record line in file field order."""
    return "|".join((event_id, name, start, end, parent, research_value, description))


def write_event_file(path: Path, lines: typ.Iterable[str]) -> Path:
    """Write ``lines`` newline-terminated to ``path`` and return it."""
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return path


def at(minutes: int) -> dt.datetime:
    """Return ``BASE`` shifted by ``minutes``."""
    return BASE + dt.timedelta(minutes=minutes)


def make_record(
    event_id: str,
    start: str,
    end: str,
    *,
    parent: str | None = None,
    name: str | None = None,
) -> EventRecord:
    """Build a validated record without going through the parser."""
    start_date = parse_iso_datetime(start)
    end_date = parse_iso_datetime(end)
    return EventRecord(
        event_id=event_id,
        event_name=name or f"event {event_id[:4]}",
        description="",
        start_date=start_date,
        end_date=end_date,
        duration_minutes=rounded_minutes(end_date - start_date),
        parent_event_id=parent,
        metadata={"originalSourceFile": "test", "lineNumber": 0, "researchValue": ""},
    )


def summary(event_id: str, start_minute: int, end_minute: int) -> EventSummary:
    """Build an event summary spanning ``BASE + start .. BASE + end`` minutes."""
    return EventSummary(
        event_id=event_id,
        event_name=f"event {event_id[:4]}",
        start_date=at(start_minute),
        end_date=at(end_minute),
    )
