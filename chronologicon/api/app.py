"""Application factory for the Chronologicon Falcon ASGI application.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with the event and insight endpoints::

    from chronologicon.api.app import AppDependencies, create_app

    deps = AppDependencies(
        ingestion_service=ingestion_service,
        timeline_service=timeline_service,
        insight_service=insight_service,
    )
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from chronologicon.api.errors import register_error_handlers
from chronologicon.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from chronologicon.ingestion.service import IngestionService
    from chronologicon.insights.service import InsightService
    from chronologicon.timeline.service import TimelineService

__all__ = ["AppDependencies", "create_app"]

DEFAULT_SEARCH_MAX_LIMIT = 100


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Services behind the domain endpoints.

    Attributes
    ----------
    ingestion_service
        Creates ingestion jobs and reports their status.
    timeline_service
        Assembles timelines and runs event searches.
    insight_service
        Runs the overlap, gap and influence analytics.
    search_max_limit
        Largest page size a search may request.

    """

    ingestion_service: IngestionService
    timeline_service: TimelineService
    insight_service: InsightService
    search_max_limit: int = DEFAULT_SEARCH_MAX_LIMIT


def _add_domain_routes(app: falcon.asgi.App, deps: AppDependencies) -> None:
    from chronologicon.api.events.resources import (
        IngestionStatusResource,
        IngestResource,
        SearchResource,
        TimelineResource,
    )
    from chronologicon.api.insights.resources import (
        EventInfluenceResource,
        OverlappingEventsResource,
        TemporalGapsResource,
    )

    app.add_route("/api/events/ingest", IngestResource(deps.ingestion_service))
    app.add_route(
        "/api/events/ingestion-status/{job_id}",
        IngestionStatusResource(deps.ingestion_service),
    )
    app.add_route(
        "/api/events/timeline/{root_event_id}",
        TimelineResource(deps.timeline_service),
    )
    app.add_route(
        "/api/events/search",
        SearchResource(deps.timeline_service, max_limit=deps.search_max_limit),
    )
    app.add_route(
        "/api/insights/overlapping-events",
        OverlappingEventsResource(deps.insight_service),
    )
    app.add_route(
        "/api/insights/temporal-gaps",
        TemporalGapsResource(deps.insight_service),
    )
    app.add_route(
        "/api/insights/event-influence",
        EventInfluenceResource(deps.insight_service),
    )


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Domain services. When ``None`` only ``/health`` and ``/ready`` are
        registered.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(domain_enabled=dependencies is not None))

    if dependencies is not None:
        _add_domain_routes(app, dependencies)

    register_error_handlers(app)
    return app
