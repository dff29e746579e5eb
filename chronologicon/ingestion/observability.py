"""Structured log events for the ingestion job lifecycle.

Usage
-----
>>> event_logger = IngestionEventLogger()
>>> event_logger.log_job_started(job_id="5a1c...", file_path="events.txt")

"""

from __future__ import annotations

import enum
import typing as typ

from chronologicon.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from chronologicon.timeline.models import JobCounts

logger = get_logger(__name__)


class IngestionEventType(enum.StrEnum):
    """Structured log event types for ingestion jobs."""

    JOB_STARTED = "ingestion.job.started"
    JOB_COMPLETED = "ingestion.job.completed"
    JOB_FAILED = "ingestion.job.failed"
    LINE_REJECTED = "ingestion.line.rejected"
    PROMOTION_PASS = "ingestion.promotion.pass"


class IngestionEventLogger:
    """Emit ingestion events via femtologging.

    Successful milestones log at INFO, rejected lines and orphans at
    WARNING, and fatal stream failures at ERROR.
    """

    def log_job_started(self, *, job_id: str, file_path: str) -> None:
        """Log that the source stream opened and the job is PROCESSING."""
        log_info(
            logger,
            "[%s] job_id=%s file_path=%s",
            IngestionEventType.JOB_STARTED,
            job_id,
            file_path,
        )

    def log_line_rejected(self, *, job_id: str, message: str) -> None:
        """Log a line that failed parsing or validation."""
        log_warning(
            logger,
            "[%s] job_id=%s error=%s",
            IngestionEventType.LINE_REJECTED,
            job_id,
            message,
        )

    def log_promotion_pass(
        self, *, job_id: str, pass_number: int, promoted: int
    ) -> None:
        """Log the number of staged events promoted in one pass."""
        log_info(
            logger,
            "[%s] job_id=%s pass=%d promoted=%d",
            IngestionEventType.PROMOTION_PASS,
            job_id,
            pass_number,
            promoted,
        )

    def log_job_completed(
        self, *, job_id: str, counts: JobCounts, duration: dt.timedelta
    ) -> None:
        """Log a COMPLETED job with its final counters."""
        log_info(
            logger,
            "[%s] job_id=%s duration_seconds=%.3f total_lines=%d "
            "processed_lines=%d error_lines=%d orphaned_events=%d",
            IngestionEventType.JOB_COMPLETED,
            job_id,
            duration.total_seconds(),
            counts.total_lines,
            counts.processed_lines,
            counts.error_lines,
            counts.orphaned_events,
        )

    def log_job_failed(
        self, *, job_id: str, status: str, error: BaseException
    ) -> None:
        """Log a job that hit a fatal stream error."""
        log_error(
            logger,
            "[%s] job_id=%s status=%s error_type=%s error_message=%s",
            IngestionEventType.JOB_FAILED,
            job_id,
            status,
            type(error).__name__,
            str(error),
            exc_info=error,
        )
