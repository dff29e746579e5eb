"""Find the largest uncovered interval between consecutive events."""

from __future__ import annotations

import datetime as dt
import typing as typ

from chronologicon.common.time import floored_minutes
from chronologicon.timeline.models import (
    GapReport,
    PrecedingEvent,
    SucceedingEvent,
    TemporalGap,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from chronologicon.timeline.models import EventSummary

GAP_FOUND_MESSAGE = "Largest temporal gap identified."
NO_GAP_MESSAGE = (
    "No significant temporal gaps found within the specified range, "
    "or too few events."
)


def _gap_between(preceding: EventSummary, succeeding: EventSummary) -> TemporalGap:
    return TemporalGap(
        duration_minutes=floored_minutes(succeeding.start_date - preceding.end_date),
        start_of_gap=preceding.end_date,
        end_of_gap=succeeding.start_date,
        preceding_event=PrecedingEvent(
            event_id=preceding.event_id,
            event_name=preceding.event_name,
            end_date=preceding.end_date,
        ),
        succeeding_event=SucceedingEvent(
            event_id=succeeding.event_id,
            event_name=succeeding.event_name,
            start_date=succeeding.start_date,
        ),
    )


def find_largest_gap(events: cabc.Sequence[EventSummary]) -> GapReport:
    """Return the widest gap between consecutive events sorted by start.

    Overlapping or touching neighbours give gaps of zero or less and never
    win. Only strictly larger gaps replace the current best, so the earliest
    of equally wide gaps is reported. A gap shorter than one whole minute is
    not significant.
    """
    if len(events) < 2:  # noqa: PLR2004
        return GapReport(largest_gap=None, message=NO_GAP_MESSAGE)

    best_span = dt.timedelta(0)
    best: tuple[EventSummary, EventSummary] | None = None
    for preceding, succeeding in zip(events, events[1:], strict=False):
        span = succeeding.start_date - preceding.end_date
        if span > best_span:
            best_span = span
            best = (preceding, succeeding)

    if best is None or floored_minutes(best_span) <= 0:
        return GapReport(largest_gap=None, message=NO_GAP_MESSAGE)
    return GapReport(largest_gap=_gap_between(*best), message=GAP_FOUND_MESSAGE)
