"""Event API resources: ingestion, job status, timelines and search.

Usage
-----
Register the resources on the Falcon app::

    app.add_route("/api/events/ingest", IngestResource(ingestion_service))
    app.add_route(
        "/api/events/ingestion-status/{job_id}",
        IngestionStatusResource(ingestion_service),
    )

"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import falcon
import msgspec

from chronologicon.api.errors import (
    InvalidInputError,
    SourceFileNotFoundError,
    TimelineNotFoundError,
)
from chronologicon.api.params import optional_datetime, optional_text, positive_int
from chronologicon.timeline.store import SearchParams, SortField

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from chronologicon.ingestion.service import IngestionService
    from chronologicon.timeline.service import TimelineService

__all__ = [
    "IngestResource",
    "IngestionStatusResource",
    "SearchResource",
    "TimelineResource",
]

DEFAULT_PAGE_SIZE = 10
MAX_PAGE = 1_000_000


class IngestResource:
    """``POST /api/events/ingest`` queues a file for background ingestion."""

    def __init__(self, ingestion_service: IngestionService) -> None:
        """Store the service that creates and dispatches jobs."""
        self._ingestion = ingestion_service

    async def on_post(self, req: Request, resp: Response) -> None:
        """Validate ``filePath``, create the job and answer 202 Accepted.

        Raises
        ------
        InvalidInputError
            If the body is not an object or ``filePath`` is missing.
        SourceFileNotFoundError
            If ``filePath`` does not name an existing file.

        """
        body = await req.get_media(default_when_empty={})
        if not isinstance(body, dict):
            msg = "request body must be a JSON object"
            raise InvalidInputError(msg)

        file_path = body.get("filePath")
        if not isinstance(file_path, str) or not file_path.strip():
            raise InvalidInputError.missing("filePath")
        if not Path(file_path).is_file():
            raise SourceFileNotFoundError(file_path)

        job_id = await self._ingestion.start_ingestion(file_path)
        resp.status = falcon.HTTP_202
        resp.media = {
            "status": "Ingestion initiated",
            "jobId": job_id,
            "message": f"Check /api/events/ingestion-status/{job_id} for updates.",
        }


class IngestionStatusResource:
    """``GET /api/events/ingestion-status/{job_id}`` reports job progress."""

    def __init__(self, ingestion_service: IngestionService) -> None:
        """Store the service used for job lookups."""
        self._ingestion = ingestion_service

    async def on_get(self, _req: Request, resp: Response, *, job_id: str) -> None:
        """Return the job's status view; unknown jobs surface as 404."""
        view = await self._ingestion.get_job_status(job_id)
        resp.media = msgspec.to_builtins(view)
        resp.status = falcon.HTTP_200


class TimelineResource:
    """``GET /api/events/timeline/{root_event_id}`` renders an event hierarchy."""

    def __init__(self, timeline_service: TimelineService) -> None:
        """Store the service that assembles timelines."""
        self._timelines = timeline_service

    async def on_get(
        self, _req: Request, resp: Response, *, root_event_id: str
    ) -> None:
        """Return the nested timeline rooted at ``root_event_id``.

        Raises
        ------
        TimelineNotFoundError
            If no event has that ID.

        """
        timeline = await self._timelines.get_timeline(root_event_id)
        if timeline is None:
            raise TimelineNotFoundError(root_event_id)
        resp.media = timeline.to_builtins()
        resp.status = falcon.HTTP_200


def _sort_field(raw: str | None) -> SortField:
    try:
        return SortField(raw) if raw is not None else SortField.START_DATE
    except ValueError:
        return SortField.START_DATE


class SearchResource:
    """``GET /api/events/search`` filters, sorts and pages committed events.

    Parameters
    ----------
    timeline_service
        Service providing the search query.
    max_limit
        Upper bound applied to the requested page size.

    """

    def __init__(self, timeline_service: TimelineService, *, max_limit: int) -> None:
        """Store the service and the page-size cap."""
        self._timelines = timeline_service
        self._max_limit = max_limit

    def _params(self, req: Request) -> SearchParams:
        sort_order = optional_text(req, "sortOrder") or "asc"
        return SearchParams(
            name=optional_text(req, "name"),
            start_date_after=optional_datetime(req, "start_date_after"),
            end_date_before=optional_datetime(req, "end_date_before"),
            sort_by=_sort_field(optional_text(req, "sortBy")),
            descending=sort_order.lower() == "desc",
            page=positive_int(req, "page", default=1, upper_bound=MAX_PAGE),
            limit=positive_int(
                req,
                "limit",
                default=min(DEFAULT_PAGE_SIZE, self._max_limit),
                maximum=self._max_limit,
            ),
        )

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return one page of matching events."""
        page = await self._timelines.search_events(self._params(req))
        resp.media = msgspec.to_builtins(page)
        resp.status = falcon.HTTP_200
