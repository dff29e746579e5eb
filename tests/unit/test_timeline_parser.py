"""Unit tests for record line parsing and validation."""

from __future__ import annotations

import datetime as dt

import pytest

from chronologicon.timeline.errors import RecordParseError, RecordParseReason
from chronologicon.timeline.parser import is_uuid, parse_record, split_fields
from tests.helpers.records import CHILD_ID, ROOT_ID, event_line


def _parse(line: str, line_number: int = 3) -> object:
    return parse_record(line, line_number=line_number, source_file="events.txt")


class TestParseRecord:
    """Valid lines produce fully populated records."""

    def test_valid_line_computes_duration_and_metadata(self) -> None:
        """Duration is derived from the span and provenance is recorded."""
        line = event_line(
            ROOT_ID,
            "Founding",
            "2023-01-01T10:00:00Z",
            "2023-01-01T11:00:00Z",
            research_value="high",
            description="The first event",
        )

        record = parse_record(line, line_number=4, source_file="archive.txt")

        assert record.event_id == ROOT_ID
        assert record.event_name == "Founding"
        assert record.start_date == dt.datetime(2023, 1, 1, 10, tzinfo=dt.UTC)
        assert record.duration_minutes == 60
        assert record.parent_event_id is None
        assert record.description == "The first event"
        assert record.metadata == {
            "originalSourceFile": "archive.txt",
            "lineNumber": 4,
            "researchValue": "high",
        }

    def test_description_keeps_embedded_delimiters(self) -> None:
        """Everything after the sixth delimiter belongs to the description."""
        line = event_line(
            ROOT_ID,
            "Siege",
            "2023-01-01T00:00:00Z",
            "2023-01-01T01:00:00Z",
            description="walls|gates|towers",
        )

        assert parse_record(line, line_number=1, source_file="f").description == (
            "walls|gates|towers"
        )

    @pytest.mark.parametrize("parent", ["NULL", "null", "Null"])
    def test_null_parent_is_case_insensitive(self, parent: str) -> None:
        """Any casing of NULL means the event has no parent."""
        line = event_line(
            ROOT_ID, "e", "2023-01-01T00:00:00Z", "2023-01-01T00:10:00Z", parent
        )

        assert parse_record(line, line_number=1, source_file="f").parent_event_id is None

    @pytest.mark.parametrize(
        ("parent", "expected"), [(" NULL ", None), (f" {CHILD_ID} ", CHILD_ID)]
    )
    def test_parent_padding_is_ignored(self, parent: str, expected: str | None) -> None:
        """Surrounding whitespace is stripped from both NULL and UUID parents."""
        line = event_line(
            ROOT_ID, "e", "2023-01-01T00:00:00Z", "2023-01-01T00:10:00Z", parent
        )

        record = parse_record(line, line_number=1, source_file="f")

        assert record.parent_event_id == expected

    def test_identifiers_are_normalised_to_lowercase(self) -> None:
        """Upper-case UUIDs are accepted and stored in lowercase."""
        line = event_line(
            CHILD_ID.upper(),
            "e",
            "2023-01-01T00:00:00Z",
            "2023-01-01T00:10:00Z",
            ROOT_ID.upper(),
        )

        record = parse_record(line, line_number=1, source_file="f")

        assert record.event_id == CHILD_ID
        assert record.parent_event_id == ROOT_ID

    def test_duration_rounds_half_minutes_up(self) -> None:
        """Ninety seconds rounds to two minutes."""
        line = event_line(ROOT_ID, "e", "2023-01-01T00:00:00Z", "2023-01-01T00:01:30Z")

        assert parse_record(line, line_number=1, source_file="f").duration_minutes == 2

    def test_equal_start_and_end_is_allowed(self) -> None:
        """Instantaneous events have zero duration."""
        line = event_line(ROOT_ID, "e", "2023-01-01T00:00:00Z", "2023-01-01T00:00:00Z")

        assert parse_record(line, line_number=1, source_file="f").duration_minutes == 0

    def test_offsets_are_converted_to_utc(self) -> None:
        """Explicit offsets are normalised to UTC."""
        line = event_line(
            ROOT_ID, "e", "2023-01-01T02:00:00+02:00", "2023-01-01T03:00:00+02:00"
        )

        record = parse_record(line, line_number=1, source_file="f")

        assert record.start_date == dt.datetime(2023, 1, 1, 0, tzinfo=dt.UTC)


class TestParseRecordErrors:
    """Each validation failure reports its reason and line."""

    @pytest.mark.parametrize(
        ("line", "reason", "fragment"),
        [
            ("", RecordParseReason.FIELD_COUNT, "invalid field count"),
            ("a|b|c", RecordParseReason.FIELD_COUNT, "expected 7, got 3"),
            (
                event_line("not-a-uuid", "e", "2023-01-01", "2023-01-02"),
                RecordParseReason.EVENT_ID,
                "invalid UUID for event_id",
            ),
            (
                event_line(ROOT_ID, "e", "2023-01-01", "2023-01-02", "parent?"),
                RecordParseReason.PARENT_EVENT_ID,
                "invalid UUID for parent_event_id",
            ),
            (
                event_line(ROOT_ID, "e", "yesterday", "2023-01-02"),
                RecordParseReason.DATE_FORMAT,
                "invalid date format",
            ),
            (
                event_line(ROOT_ID, "e", "0001-01-01T00:00:00+01:00", "2023-01-02"),
                RecordParseReason.DATE_FORMAT,
                "invalid date format",
            ),
            (
                event_line(ROOT_ID, "e", "2023-01-01", "9999-12-31T23:59:59-01:00"),
                RecordParseReason.DATE_FORMAT,
                "invalid date format",
            ),
            (
                event_line(ROOT_ID, "e", "2023-01-03", "2023-01-02"),
                RecordParseReason.START_AFTER_END,
                "start after end",
            ),
        ],
    )
    def test_rejections(
        self, line: str, reason: RecordParseReason, fragment: str
    ) -> None:
        """Malformed lines raise RecordParseError with the matching reason."""
        with pytest.raises(RecordParseError) as excinfo:
            _parse(line, line_number=7)

        error = excinfo.value
        assert error.reason is reason
        assert error.line_number == 7
        assert fragment in str(error)
        assert error.job_message.startswith("Line 7: ")

    def test_event_id_is_checked_before_dates(self) -> None:
        """The first failing check determines the reported reason."""
        line = event_line("bogus", "e", "not-a-date", "also-not")

        with pytest.raises(RecordParseError) as excinfo:
            _parse(line)

        assert excinfo.value.reason is RecordParseReason.EVENT_ID


def test_split_fields_stops_after_six_delimiters() -> None:
    """The seventh field swallows any remaining delimiters."""
    assert split_fields("1|2|3|4|5|6|7|8") == ["1", "2", "3", "4", "5", "6", "7|8"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (ROOT_ID, True),
        (ROOT_ID.upper(), True),
        (ROOT_ID.replace("-", ""), False),
        (f"{ROOT_ID}0", False),
    ],
)
def test_is_uuid(value: str, *, expected: bool) -> None:
    """Only canonical 8-4-4-4-12 hex strings are identifiers."""
    assert is_uuid(value) is expected
