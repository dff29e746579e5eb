"""Job submission and status lookups for file ingestion."""

from __future__ import annotations

import typing as typ

from chronologicon.logging import get_logger, log_info
from chronologicon.timeline.errors import JobNotFoundError

if typ.TYPE_CHECKING:
    from chronologicon.timeline.models import JobStatusView
    from chronologicon.timeline.store import JobStore

JobDispatcher: typ.TypeAlias = typ.Callable[[str, str], None]

logger = get_logger(__name__)


class IngestionService:
    """Create ingestion jobs and hand them to a background dispatcher.

    Parameters
    ----------
    job_store
        Store holding job state.
    dispatcher
        Callable taking ``(job_id, file_path)`` that schedules the work,
        typically :func:`chronologicon.ingestion.actor.dispatch_with_actor`.

    """

    def __init__(self, job_store: JobStore, dispatcher: JobDispatcher) -> None:
        """Store the job store and dispatcher."""
        self._jobs = job_store
        self._dispatch = dispatcher

    async def start_ingestion(self, file_path: str) -> str:
        """Create a PENDING job for ``file_path``, dispatch it and return its ID."""
        job_id = await self._jobs.create_job(file_path)
        self._dispatch(job_id, file_path)
        log_info(logger, "Queued ingestion job %s for %s", job_id, file_path)
        return job_id

    async def get_job_status(self, job_id: str) -> JobStatusView:
        """Return the status view for ``job_id``.

        Raises
        ------
        JobNotFoundError
            If no job has that ID.

        """
        view = await self._jobs.get_job(job_id)
        if view is None:
            raise JobNotFoundError(job_id)
        return view
