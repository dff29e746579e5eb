"""Insight API resources: overlapping events, temporal gaps and influence.

Negative results (no overlaps, no gap, no path) are successful responses
carrying an explanatory message; only bad parameters produce errors.
"""

from __future__ import annotations

import typing as typ

import falcon
import msgspec

from chronologicon.api.params import required_text, required_window

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from chronologicon.insights.service import InsightService

__all__ = ["EventInfluenceResource", "OverlappingEventsResource", "TemporalGapsResource"]


class OverlappingEventsResource:
    """``GET /api/insights/overlapping-events?start_date=&end_date=``."""

    def __init__(self, insight_service: InsightService) -> None:
        """Store the insight service."""
        self._insights = insight_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return every overlapping pair among events touching the window."""
        start, end = required_window(req, "start_date", "end_date")
        pairs = await self._insights.find_overlapping_events(start, end)
        resp.media = msgspec.to_builtins(pairs)
        resp.status = falcon.HTTP_200


class TemporalGapsResource:
    """``GET /api/insights/temporal-gaps?startDate=&endDate=``."""

    def __init__(self, insight_service: InsightService) -> None:
        """Store the insight service."""
        self._insights = insight_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the largest gap between events touching the window."""
        start, end = required_window(req, "startDate", "endDate")
        report = await self._insights.find_temporal_gaps(start, end)
        resp.media = msgspec.to_builtins(report)
        resp.status = falcon.HTTP_200


class EventInfluenceResource:
    """``GET /api/insights/event-influence?sourceEventId=&targetEventId=``."""

    def __init__(self, insight_service: InsightService) -> None:
        """Store the insight service."""
        self._insights = insight_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return the minimum-duration path from source to target."""
        source_id = required_text(req, "sourceEventId")
        target_id = required_text(req, "targetEventId")
        path = await self._insights.find_event_influence(source_id, target_id)
        resp.media = msgspec.to_builtins(path)
        resp.status = falcon.HTTP_200
