"""Error taxonomy for timeline ingestion.

Per-line and per-event failures (:class:`RecordParseError`,
:class:`OrphanedEventError`) are recorded on the job and never abort it.
Only :class:`FatalStreamError`, which also wraps store failures, ends a job
early.
"""

from __future__ import annotations

import enum


class RecordParseReason(enum.StrEnum):
    """Machine-readable reasons a record line was rejected."""

    FIELD_COUNT = "field_count"
    EVENT_ID = "event_id"
    PARENT_EVENT_ID = "parent_event_id"
    DATE_FORMAT = "date_format"
    START_AFTER_END = "start_after_end"


class RecordParseError(ValueError):
    """Raised when a record line fails validation."""

    def __init__(
        self, message: str, *, reason: RecordParseReason, line_number: int
    ) -> None:
        """Store the reason and line so callers can report both."""
        super().__init__(message)
        self.reason = reason
        self.line_number = line_number

    @property
    def job_message(self) -> str:
        """Return the string recorded on the ingestion job."""
        return f"Line {self.line_number}: {self}"

    @classmethod
    def invalid_field_count(cls, line_number: int, count: int) -> RecordParseError:
        """Return an error for a line without seven fields."""
        return cls(
            f"invalid field count: expected 7, got {count}",
            reason=RecordParseReason.FIELD_COUNT,
            line_number=line_number,
        )

    @classmethod
    def invalid_event_id(cls, line_number: int, value: str) -> RecordParseError:
        """Return an error for a malformed ``event_id``."""
        return cls(
            f"invalid UUID for event_id: {value!r}",
            reason=RecordParseReason.EVENT_ID,
            line_number=line_number,
        )

    @classmethod
    def invalid_parent_id(cls, line_number: int, value: str) -> RecordParseError:
        """Return an error for a malformed ``parent_event_id``."""
        return cls(
            f"invalid UUID for parent_event_id: {value!r}",
            reason=RecordParseReason.PARENT_EVENT_ID,
            line_number=line_number,
        )

    @classmethod
    def invalid_date(
        cls, line_number: int, start: str, end: str
    ) -> RecordParseError:
        """Return an error when either timestamp is not ISO-8601."""
        return cls(
            f"invalid date format: start_date={start!r}, end_date={end!r}",
            reason=RecordParseReason.DATE_FORMAT,
            line_number=line_number,
        )

    @classmethod
    def start_after_end(cls, line_number: int) -> RecordParseError:
        """Return an error when ``start_date`` is later than ``end_date``."""
        return cls(
            "start after end: start_date cannot be after end_date",
            reason=RecordParseReason.START_AFTER_END,
            line_number=line_number,
        )


class OrphanedEventError(Exception):
    """A staged event whose parent chain never resolved."""

    def __init__(
        self, event_id: str, parent_event_id: str, line_number: int | None
    ) -> None:
        """Describe the unresolved event and the parent it was waiting for."""
        self.event_id = event_id
        self.parent_event_id = parent_event_id
        self.line_number = line_number
        where = f" (line {line_number})" if line_number is not None else ""
        super().__init__(
            f"orphaned: event {event_id}{where}: parent chain never resolved "
            f"(missing parent {parent_event_id})"
        )


class FatalStreamError(RuntimeError):
    """Raised when the source file or the event store cannot be read or written."""

    @property
    def job_message(self) -> str:
        """Return the string recorded on the ingestion job."""
        return f"Fatal Error: {self}"

    @classmethod
    def unreadable(cls, path: str, exc: BaseException) -> FatalStreamError:
        """Return an error for a file that could not be opened."""
        return cls(f"cannot open {path}: {exc}")

    @classmethod
    def interrupted(
        cls, path: str, line_number: int, exc: BaseException
    ) -> FatalStreamError:
        """Return an error for a read failure after ``line_number`` lines."""
        return cls(f"read of {path} failed after line {line_number}: {exc}")

    @classmethod
    def store_failed(cls, exc: BaseException) -> FatalStreamError:
        """Return an error for a store read or write that could not complete."""
        return cls(f"event store unavailable: {type(exc).__name__}: {exc}")


class JobNotFoundError(LookupError):
    """Raised when an ingestion job ID does not exist."""

    def __init__(self, job_id: str) -> None:
        """Record the missing job ID."""
        self.job_id = job_id
        super().__init__(f"ingestion job {job_id} does not exist")


class JobFinalizedError(RuntimeError):
    """Raised when a COMPLETED or FAILED job would be mutated."""

    def __init__(self, job_id: str, status: str) -> None:
        """Record the job and the terminal status it already holds."""
        self.job_id = job_id
        self.status = status
        super().__init__(f"ingestion job {job_id} is already {status}")


class TimezoneAwareRequiredError(ValueError):
    """Raised when a naive datetime reaches the event store."""

    def __init__(self, context: str) -> None:
        """Attach a consistent message for the failing context."""
        super().__init__(f"{context} must be timezone aware")
