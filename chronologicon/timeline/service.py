"""Timeline and search queries over committed events."""

from __future__ import annotations

import typing as typ

from chronologicon.timeline.hierarchy import assemble_timeline

if typ.TYPE_CHECKING:
    from chronologicon.timeline.hierarchy import Timeline
    from chronologicon.timeline.models import SearchPage
    from chronologicon.timeline.store import EventStore, SearchParams


class TimelineService:
    """Assemble event hierarchies and page through events."""

    def __init__(self, event_store: EventStore) -> None:
        """Store the event store used for every query."""
        self._events = event_store

    async def get_timeline(self, root_event_id: str) -> Timeline | None:
        """Return the timeline around ``root_event_id``, or None if it is unknown."""
        family = await self._events.get_event_family(root_event_id)
        if not family:
            return None
        return assemble_timeline(family, root_event_id)

    async def search_events(self, params: SearchParams) -> SearchPage:
        """Return one page of events matching ``params``."""
        return await self._events.search_events(params)
