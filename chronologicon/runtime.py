"""Chronologicon runtime entrypoint.

Keeps ``chronologicon.runtime:create_app`` stable as the Granian factory
target. When ``CHRONOLOGICON_DATABASE_URL`` is set the app carries the
event and insight endpoints and dispatches ingestion jobs to the Dramatiq
actor; otherwise it starts in health-only mode.

Configuration is driven by environment variables:

- ``CHRONOLOGICON_HOST``: Bind address (default ``0.0.0.0``)
- ``CHRONOLOGICON_PORT``: Listen port (default ``8080``)
- ``CHRONOLOGICON_LOG_LEVEL``: Log level (default ``INFO``)
- ``CHRONOLOGICON_DATABASE_URL``: Database URL (optional)
- ``CHRONOLOGICON_SEARCH_MAX_LIMIT``: Largest search page (default ``100``)

Run the service directly with ``python -m chronologicon.runtime``.
"""

from __future__ import annotations

import typing as typ

from chronologicon.config import ChronologiconConfig, parse_port
from chronologicon.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

    from chronologicon.api.app import AppDependencies

__all__ = ["build_dependencies", "create_app", "main"]

logger = get_logger(__name__)


def _load_config() -> ChronologiconConfig:
    try:
        return ChronologiconConfig.from_env()
    except ValueError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If ``port_str`` is not a valid integer in range 1-65535.

    """
    try:
        return parse_port(port_str)
    except ValueError as exc:
        # Validation failures need no traceback
        log_error(logger, "Invalid CHRONOLOGICON_PORT value: %r: %s", port_str, exc)
        raise SystemExit(1) from exc


def build_dependencies(config: ChronologiconConfig) -> AppDependencies:
    """Wire stores, services and the actor dispatcher for ``config``.

    ``config.database_url`` must be set.
    """
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from chronologicon.api.app import AppDependencies
    from chronologicon.ingestion.actor import dispatch_with_actor
    from chronologicon.ingestion.service import IngestionService
    from chronologicon.insights.service import InsightService
    from chronologicon.timeline.service import TimelineService
    from chronologicon.timeline.store import EventStore, JobStore

    database_url = typ.cast("str", config.database_url)
    engine = create_async_engine(database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    event_store = EventStore(session_factory)

    return AppDependencies(
        ingestion_service=IngestionService(
            JobStore(session_factory), dispatch_with_actor(database_url)
        ),
        timeline_service=TimelineService(event_store),
        insight_service=InsightService(event_store),
        search_max_limit=config.search_max_limit,
    )


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the environment."""
    from chronologicon.api.app import create_app as _create_api_app

    config = _load_config()
    if config.database_url is None:
        return _create_api_app()
    return _create_api_app(build_dependencies(config))


def main() -> None:
    """Start the Chronologicon runtime server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = _load_config()
    port = _parse_port(config.port)

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid CHRONOLOGICON_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Chronologicon runtime on %s:%d (log_level=%s, mode=%s)",
        config.host,
        port,
        normalized_level,
        "health-only" if config.database_url is None else "full",
    )

    server = Granian(
        "chronologicon.runtime:create_app",
        address=config.host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
