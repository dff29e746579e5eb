"""Time helpers shared by the parser, the store and the insight algorithms."""

from __future__ import annotations

import datetime as dt

_SECONDS_PER_MINUTE = 60


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for DB defaults."""
    return dt.datetime.now(dt.UTC)


def parse_iso_datetime(value: str) -> dt.datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    A trailing ``Z`` is accepted and values without an offset are taken
    to be UTC.

    Raises
    ------
    ValueError
        If ``value`` is not a valid ISO-8601 date or date-time, or its UTC
        equivalent falls outside the representable range.

    """
    parsed = dt.datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    try:
        return parsed.astimezone(dt.UTC)
    except OverflowError as exc:
        msg = f"{value!r} is out of range once converted to UTC"
        raise ValueError(msg) from exc


def rounded_minutes(delta: dt.timedelta) -> int:
    """Return ``delta`` in whole minutes, rounding halves up."""
    seconds = delta.total_seconds()
    return int((seconds + _SECONDS_PER_MINUTE / 2) // _SECONDS_PER_MINUTE)


def floored_minutes(delta: dt.timedelta) -> int:
    """Return ``delta`` in whole minutes, rounding towards negative infinity."""
    return int(delta.total_seconds() // _SECONDS_PER_MINUTE)
