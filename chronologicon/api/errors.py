"""API exceptions and the Falcon error handlers that render them.

Usage
-----
Register error handlers on the Falcon app::

    from chronologicon.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from chronologicon.timeline.errors import JobNotFoundError

if typ.TYPE_CHECKING:
    import falcon.asgi
    from falcon.asgi import Request, Response

__all__ = [
    "InvalidInputError",
    "SourceFileNotFoundError",
    "TimelineNotFoundError",
    "handle_invalid_input",
    "handle_job_not_found",
    "handle_source_file_not_found",
    "handle_timeline_not_found",
    "register_error_handlers",
]


class TimelineNotFoundError(Exception):
    """Raised when a timeline is requested for an unknown root event."""

    def __init__(self, root_event_id: str) -> None:
        """Record the unknown root event ID."""
        self.root_event_id = root_event_id
        super().__init__(f"No event with ID '{root_event_id}' exists.")


class SourceFileNotFoundError(Exception):
    """Raised when an ingestion request names a file that does not exist."""

    def __init__(self, file_path: str) -> None:
        """Record the missing path."""
        self.file_path = file_path
        super().__init__(f"File not found at path: {file_path}")


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Use this instead of ``ValueError`` so that only intentional validation
    failures reach the caller; programmer mistakes still surface as 500s.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)

    @classmethod
    def missing(cls, field: str) -> InvalidInputError:
        """Build the error for a required parameter that was not supplied."""
        return cls("parameter is required", field=field)

    @classmethod
    def malformed(cls, field: str, expected: str) -> InvalidInputError:
        """Build the error for a parameter that could not be parsed."""
        return cls(f"expected {expected}", field=field)


def _not_found(resp: Response, title: str, ex: Exception) -> None:
    resp.status = falcon.HTTP_404
    resp.media = {"title": title, "description": str(ex)}


async def handle_job_not_found(
    _req: Request,
    resp: Response,
    ex: JobNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``JobNotFoundError`` to an HTTP 404 JSON response."""
    _not_found(resp, "Job not found", ex)


async def handle_timeline_not_found(
    _req: Request,
    resp: Response,
    ex: TimelineNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``TimelineNotFoundError`` to an HTTP 404 JSON response."""
    _not_found(resp, "Event not found", ex)


async def handle_source_file_not_found(
    _req: Request,
    resp: Response,
    ex: SourceFileNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``SourceFileNotFoundError`` to an HTTP 404 JSON response."""
    _not_found(resp, "File not found", ex)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and optional field.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Attach every API error handler to ``app``."""
    app.add_error_handler(JobNotFoundError, handle_job_not_found)
    app.add_error_handler(TimelineNotFoundError, handle_timeline_not_found)
    app.add_error_handler(SourceFileNotFoundError, handle_source_file_not_found)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
