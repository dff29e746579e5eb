"""Read-side analytics over committed events.

Each query performs one store read and then runs its algorithm in memory,
so it sees a single snapshot of the store. Nothing is cached between
queries and concurrent ingestion may change results from one call to the
next.
"""

from __future__ import annotations

import typing as typ

from chronologicon.insights.gaps import find_largest_gap
from chronologicon.insights.influence import find_influence_path
from chronologicon.insights.overlaps import find_overlapping_events
from chronologicon.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import datetime as dt

    from chronologicon.timeline.models import GapReport, InfluencePath, OverlapPair
    from chronologicon.timeline.store import EventStore

logger = get_logger(__name__)


class InsightService:
    """Overlap, gap and influence-path queries backed by an :class:`EventStore`."""

    def __init__(self, event_store: EventStore) -> None:
        """Store the event store used for every query."""
        self._events = event_store

    async def find_overlapping_events(
        self, start: dt.datetime, end: dt.datetime
    ) -> list[OverlapPair]:
        """Return overlapping pairs among events touching ``[start, end]``."""
        events = await self._events.get_events_overlapping_window(start, end)
        pairs = find_overlapping_events(events)
        log_debug(
            logger,
            "overlap query window=%s..%s events=%d pairs=%d",
            start.isoformat(),
            end.isoformat(),
            len(events),
            len(pairs),
        )
        return pairs

    async def find_temporal_gaps(
        self, start: dt.datetime, end: dt.datetime
    ) -> GapReport:
        """Return the largest gap between events touching ``[start, end]``."""
        events = await self._events.get_events_sorted_by_start(start, end)
        return find_largest_gap(events)

    async def find_event_influence(
        self, source_event_id: str, target_event_id: str
    ) -> InfluencePath:
        """Return the cheapest path from the source to the target event."""
        subtree = await self._events.get_descendant_subtree(source_event_id)
        return find_influence_path(subtree, source_event_id, target_event_id)
