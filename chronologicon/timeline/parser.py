"""Parse and validate pipe-delimited event records.

Each line carries seven fields::

    event_id|event_name|start_iso|end_iso|parent_id_or_NULL|research_value|description

The description is the remainder of the line and may itself contain the
delimiter. Checks run in a fixed order and the first failure wins:
field count, ``event_id``, ``parent_event_id``, dates, then ordering.

Example:
>>> record = parse_record(
...     "2b6f4b8e-6d44-4a0e-9d7b-1f0b1c2d3e4f|Siege|2024-01-01T00:00:00Z|"
...     "2024-01-01T01:30:00Z|NULL|high|Walls breached|again",
...     line_number=1,
...     source_file="events.txt",
... )
>>> record.duration_minutes, record.description
(90, 'Walls breached|again')

"""

from __future__ import annotations

import re

from chronologicon.common.time import parse_iso_datetime, rounded_minutes
from chronologicon.timeline.errors import RecordParseError
from chronologicon.timeline.models import EventRecord

DELIMITER = "|"
FIELD_COUNT = 7
NULL_PARENT = "NULL"

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_uuid(value: str) -> bool:
    """Return True when ``value`` is a canonical 8-4-4-4-12 hex UUID."""
    return UUID_PATTERN.match(value) is not None


def split_fields(line: str) -> list[str]:
    """Split ``line`` into at most seven fields, keeping the description whole."""
    return line.split(DELIMITER, FIELD_COUNT - 1)


def _parse_parent(raw: str, line_number: int) -> str | None:
    candidate = raw.strip()
    if candidate.upper() == NULL_PARENT:
        return None
    if not is_uuid(candidate):
        raise RecordParseError.invalid_parent_id(line_number, raw)
    return candidate.lower()


def parse_record(line: str, *, line_number: int, source_file: str) -> EventRecord:
    """Turn one raw line into a validated :class:`EventRecord`.

    Parameters
    ----------
    line : str
        A single line without its trailing newline.
    line_number : int
        1-based position of the line in ``source_file``.
    source_file : str
        Path recorded in the event's provenance metadata.

    Returns
    -------
    EventRecord
        The validated event with computed duration and provenance metadata.

    Raises
    ------
    RecordParseError
        If any validation step fails; ``reason`` identifies which one.

    """
    fields = split_fields(line.rstrip("\r"))
    if len(fields) != FIELD_COUNT:
        raise RecordParseError.invalid_field_count(line_number, len(fields))

    event_id, event_name, start_raw, end_raw, parent_raw, research_value, description = (
        fields
    )

    if not is_uuid(event_id):
        raise RecordParseError.invalid_event_id(line_number, event_id)
    parent_event_id = _parse_parent(parent_raw, line_number)

    try:
        start_date = parse_iso_datetime(start_raw)
        end_date = parse_iso_datetime(end_raw)
    except ValueError as exc:
        raise RecordParseError.invalid_date(line_number, start_raw, end_raw) from exc

    if start_date > end_date:
        raise RecordParseError.start_after_end(line_number)

    return EventRecord(
        event_id=event_id.lower(),
        event_name=event_name,
        description=description,
        start_date=start_date,
        end_date=end_date,
        duration_minutes=rounded_minutes(end_date - start_date),
        parent_event_id=parent_event_id,
        metadata={
            "originalSourceFile": source_file,
            "lineNumber": line_number,
            "researchValue": research_value,
        },
    )
