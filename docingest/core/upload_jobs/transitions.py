"""
Pure transition functions over UploadJob.

Every state change of a job is one of these functions: they take the
current job plus the event payload and return a new job. None of them
performs I/O, so the whole state machine can be exercised without a
scheduler or a remote service.

Progress is monotonic until a terminal status: each non-terminal
transition raises progress to a phase floor and never lowers it.

Once a job is submitted, rejected, failed or cancelled its SourceFile is
dropped, so uploaded content is not held for the life of the session.

Dependencies: docingest.core.upload_jobs.models, docingest.boundary.ingestion.schemas
System role: Reducer for the keyed job map
"""

from datetime import datetime, timezone

from docingest.boundary.ingestion.schemas import RemoteState
from docingest.core.exceptions import IngestionException, ValidationError
from docingest.core.upload_jobs.models import UploadJob, UploadStatus


ENCODING_PROGRESS = 5
SUBMITTING_PROGRESS = 20
SUBMITTED_PROGRESS = 30
POLLING_PROGRESS = 35
MAX_NON_TERMINAL_PROGRESS = 99

REMOTE_PHASE_FLOOR = {
    RemoteState.UPLOADING: 40,
    RemoteState.PROCESSING: 60,
}

REMOTE_PHASE_TEXT = {
    RemoteState.UPLOADING: "Uploading to ingestion service...",
    RemoteState.PROCESSING: "Processing document...",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _raise_progress(job: UploadJob, floor: int) -> int:
    return max(job.progress, min(floor, MAX_NON_TERMINAL_PROGRESS))


def _guard_open(job: UploadJob) -> None:
    if job.is_terminal:
        raise ValueError(f"Job {job.id} is already {job.status.value}")


def rejected(job: UploadJob, reasons: list[str]) -> UploadJob:
    """File failed validation; terminal before any network work."""
    _guard_open(job)
    return job.model_copy(
        update={
            "status": UploadStatus.FAILED,
            "source": None,
            "validation_errors": list(reasons),
            "last_error": "; ".join(reasons),
            "error_code": ValidationError.code,
            "status_text": "Validation failed",
            "completed_at": _now(),
        }
    )


def encoding(job: UploadJob) -> UploadJob:
    _guard_open(job)
    return job.model_copy(
        update={
            "status": UploadStatus.ENCODING,
            "status_text": "Encoding file...",
            "progress": _raise_progress(job, ENCODING_PROGRESS),
        }
    )


def submitting(job: UploadJob) -> UploadJob:
    _guard_open(job)
    return job.model_copy(
        update={
            "status": UploadStatus.SUBMITTING,
            "status_text": "Uploading to ingestion service...",
            "progress": _raise_progress(job, SUBMITTING_PROGRESS),
        }
    )


def submitted(job: UploadJob, remote_document_id: str | None) -> UploadJob:
    """
    Submission accepted.

    Without a remote id the service processed the file synchronously, so
    the job goes straight to PROCESSED and is never polled.
    """
    _guard_open(job)
    if remote_document_id is None:
        return job.model_copy(
            update={
                "source": None,
                "status": UploadStatus.PROCESSED,
                "status_text": "Upload complete",
                "progress": 100,
                "completed_at": _now(),
            }
        )
    return job.model_copy(
        update={
            "source": None,
            "status": UploadStatus.SUBMITTED,
            "remote_document_id": remote_document_id,
            "status_text": "Upload complete, waiting for processing",
            "progress": _raise_progress(job, SUBMITTED_PROGRESS),
        }
    )


def polling(job: UploadJob) -> UploadJob:
    """First entry into the polling phase."""
    _guard_open(job)
    if job.remote_document_id is None:
        raise ValueError(f"Job {job.id} has no remote document id to poll")
    return job.model_copy(
        update={
            "status": UploadStatus.POLLING,
            "status_text": "Waiting for processing status...",
            "progress": _raise_progress(job, POLLING_PROGRESS),
            "polling_started_at": job.polling_started_at or _now(),
        }
    )


def tick(job: UploadJob, state: RemoteState, reported_progress: int | None = None) -> UploadJob:
    """A non-terminal remote status was observed."""
    _guard_open(job)
    floor = REMOTE_PHASE_FLOOR.get(state, POLLING_PROGRESS)
    if reported_progress is not None:
        floor = max(floor, reported_progress)
    return job.model_copy(
        update={
            "status_text": REMOTE_PHASE_TEXT.get(state, "Processing document..."),
            "progress": _raise_progress(job, floor),
        }
    )


def processed(job: UploadJob) -> UploadJob:
    _guard_open(job)
    return job.model_copy(
        update={
            "status": UploadStatus.PROCESSED,
            "status_text": "Processing complete",
            "progress": 100,
            "completed_at": _now(),
        }
    )


def failed(job: UploadJob, error: IngestionException, status_text: str = "Processing failed") -> UploadJob:
    """Terminal failure carrying the error's message and code."""
    _guard_open(job)
    return job.model_copy(
        update={
            "source": None,
            "status": UploadStatus.FAILED,
            "last_error": error.message,
            "error_code": error.code,
            "status_text": status_text,
            "completed_at": _now(),
        }
    )


def timed_out(job: UploadJob, error: IngestionException) -> UploadJob:
    _guard_open(job)
    return job.model_copy(
        update={
            "status": UploadStatus.TIMED_OUT,
            "last_error": error.message,
            "error_code": error.code,
            "status_text": "Processing timed out",
            "completed_at": _now(),
        }
    )


def cancelled(job: UploadJob) -> UploadJob:
    """
    Tracking stopped by the caller.

    Status is left untouched: the remote work is not cancelled, only the
    local tracking of it. Terminal jobs are returned unchanged.
    """
    if job.is_terminal:
        return job
    return job.model_copy(update={"source": None, "status_text": "Tracking cancelled"})
