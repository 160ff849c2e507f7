"""
Ingestion event observer.

The poller and orchestrator report side-channel events (job updates,
swallowed transient poll errors, unavailable analyses) through an
observer instead of logging directly, so callers can plug in their own
reporting. LoggingObserver is the default.

Dependencies: logging (stdlib), docingest.observability.log_utils
System role: Pluggable diagnostics sink for the polling core
"""

import logging

from docingest.core.exceptions import IngestionException
from docingest.core.upload_jobs.models import UploadJob
from docingest.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class IngestionObserver:
    """No-op observer. Subclass and override the events you care about."""

    def job_updated(self, job: UploadJob) -> None:
        """Called after every applied transition."""

    def transient_poll_error(self, job: UploadJob, error: IngestionException) -> None:
        """Called when a single status query failed and the tick was skipped."""

    def analysis_unavailable(self, job: UploadJob, error: BaseException | None) -> None:
        """Called when a processed job has no analysis to record."""


class LoggingObserver(IngestionObserver):
    """Observer that writes every event to the standard logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def job_updated(self, job: UploadJob) -> None:
        level = logging.INFO if job.is_terminal else logging.DEBUG
        log_with_context(
            self._logger,
            level,
            f"Job {job.id} is {job.status.value}",
            job_id=job.id,
            file_name=job.name,
            status=job.status.value,
            progress=job.progress,
            remote_document_id=job.remote_document_id,
            error_code=job.error_code,
        )

    def transient_poll_error(self, job: UploadJob, error: IngestionException) -> None:
        log_with_context(
            self._logger,
            logging.WARNING,
            f"Status query failed for job {job.id}, retrying on next tick",
            job_id=job.id,
            remote_document_id=job.remote_document_id,
            error_msg=error.message,
        )

    def analysis_unavailable(self, job: UploadJob, error: BaseException | None) -> None:
        if error is None:
            log_with_context(
                self._logger,
                logging.INFO,
                f"No analysis available for job {job.id}",
                job_id=job.id,
                remote_document_id=job.remote_document_id,
            )
            return
        log_exception_with_context(
            self._logger,
            f"Analysis fetch failed for job {job.id}",
            error,
            job_id=job.id,
            remote_document_id=job.remote_document_id,
        )
