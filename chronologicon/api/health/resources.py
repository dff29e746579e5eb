"""Liveness and readiness checks.

These resources need no database access and are registered in every mode.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness check returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness check reporting whether domain endpoints are mounted.

    Parameters
    ----------
    domain_enabled
        True when the app was built with a database-backed service set.

    """

    def __init__(self, *, domain_enabled: bool = False) -> None:
        """Store whether the event endpoints are available."""
        self._domain_enabled = domain_enabled

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        resp.media = {
            "status": "ready",
            "mode": "full" if self._domain_enabled else "health-only",
        }
        resp.status = HTTPStatus.OK
