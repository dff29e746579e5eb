"""Query-string parsing shared by the event and insight resources.

Every helper raises :class:`~chronologicon.api.errors.InvalidInputError`
naming the offending parameter, which the app renders as HTTP 400.
"""

from __future__ import annotations

import typing as typ

from chronologicon.api.errors import InvalidInputError
from chronologicon.common.time import parse_iso_datetime

if typ.TYPE_CHECKING:
    import datetime as dt

    from falcon.asgi import Request


def optional_text(req: Request, name: str) -> str | None:
    """Return the stripped parameter, or None when absent or blank."""
    value = req.get_param(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def required_text(req: Request, name: str) -> str:
    """Return a non-blank parameter or raise ``InvalidInputError``."""
    value = optional_text(req, name)
    if value is None:
        raise InvalidInputError.missing(name)
    return value


def optional_datetime(req: Request, name: str) -> dt.datetime | None:
    """Parse an optional ISO-8601 parameter into an aware UTC datetime."""
    value = optional_text(req, name)
    if value is None:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError as exc:
        raise InvalidInputError.malformed(name, "an ISO-8601 date-time") from exc


def required_datetime(req: Request, name: str) -> dt.datetime:
    """Parse a required ISO-8601 parameter into an aware UTC datetime."""
    value = optional_datetime(req, name)
    if value is None:
        raise InvalidInputError.missing(name)
    return value


def required_window(
    req: Request, start_name: str, end_name: str
) -> tuple[dt.datetime, dt.datetime]:
    """Return the ``(start, end)`` window named by two parameters.

    Raises
    ------
    InvalidInputError
        If either bound is missing or malformed, or the window is inverted.

    """
    start = required_datetime(req, start_name)
    end = required_datetime(req, end_name)
    if start > end:
        msg = f"must not be after {end_name}"
        raise InvalidInputError(msg, field=start_name)
    return start, end


def positive_int(
    req: Request,
    name: str,
    *,
    default: int,
    maximum: int | None = None,
    upper_bound: int | None = None,
) -> int:
    """Parse a positive integer parameter.

    Values above ``maximum`` are clamped to it; values above ``upper_bound``
    are rejected.
    """
    raw = optional_text(req, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidInputError.malformed(name, "a positive integer") from exc
    if value < 1:
        raise InvalidInputError.malformed(name, "a positive integer")
    if upper_bound is not None and value > upper_bound:
        raise InvalidInputError.malformed(
            name, f"an integer between 1 and {upper_bound}"
        )
    if maximum is not None:
        return min(value, maximum)
    return value
