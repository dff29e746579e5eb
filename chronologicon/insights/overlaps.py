"""Sweep-line detection of overlapping event spans.

Every event contributes a start point and an end point. Points are swept in
time order with starts ahead of ends at the same instant, so when an event
starts it is paired with every event still active. Pairs that merely touch
have zero overlap and are dropped.
"""

from __future__ import annotations

import enum
import typing as typ

from chronologicon.common.time import floored_minutes
from chronologicon.timeline.models import OverlapPair

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from chronologicon.timeline.models import EventSummary


class PointKind(enum.IntEnum):
    """Sweep point kinds; the value orders ties at the same instant."""

    START = 0
    END = 1


SweepPoint: typ.TypeAlias = "tuple[dt.datetime, PointKind, int]"


def build_sweep_points(events: cabc.Sequence[EventSummary]) -> list[SweepPoint]:
    """Return sorted ``(instant, kind, index)`` points for ``events``."""
    points: list[SweepPoint] = []
    for index, event in enumerate(events):
        points.append((event.start_date, PointKind.START, index))
        points.append((event.end_date, PointKind.END, index))
    points.sort(key=lambda point: (point[0], point[1]))
    return points


def overlap_minutes(first: EventSummary, second: EventSummary) -> int:
    """Return the whole minutes both events share (may be zero or negative)."""
    overlap_start = max(first.start_date, second.start_date)
    overlap_end = min(first.end_date, second.end_date)
    return floored_minutes(overlap_end - overlap_start)


def find_overlapping_events(
    events: cabc.Sequence[EventSummary],
) -> list[OverlapPair]:
    """Return every unordered pair of events overlapping for at least a minute.

    Each pair lists the later-starting event first. Runs in O(n log n) for
    the sort plus O(n * k) pairing, where k is the peak number of
    simultaneously active events.
    """
    if len(events) < 2:  # noqa: PLR2004
        return []

    active: dict[int, EventSummary] = {}
    reported: set[tuple[str, str]] = set()
    pairs: list[OverlapPair] = []

    for _instant, kind, index in build_sweep_points(events):
        event = events[index]
        if kind is PointKind.END:
            active.pop(index, None)
            continue

        for other in active.values():
            key = (
                (event.event_id, other.event_id)
                if event.event_id <= other.event_id
                else (other.event_id, event.event_id)
            )
            if key in reported:
                continue
            minutes = overlap_minutes(event, other)
            if minutes > 0:
                reported.add(key)
                pairs.append(
                    OverlapPair(events=(event, other), overlap_duration_minutes=minutes)
                )
        active[index] = event

    return pairs
