"""
Batch domain models and schemas.

Response schemas for the batch upload API.

Dependencies: pydantic
System role: Batch API contracts
"""

from datetime import datetime

from pydantic import BaseModel, Field

from docingest.application.services.upload_orchestrator import BatchOutcome
from docingest.core.upload_jobs.models import UploadJob


class JobResponse(BaseModel):
    """Response schema for one upload job."""

    id: str
    sequence: int
    name: str
    size_bytes: int
    mime_type: str
    status: str
    status_text: str
    progress: int
    remote_document_id: str | None = None
    last_error: str | None = None
    error_code: str | None = None
    validation_errors: list[str] = Field(default_factory=list)
    created_at: datetime
    polling_started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_job(cls, job: UploadJob) -> "JobResponse":
        return cls(
            id=job.id,
            sequence=job.sequence,
            name=job.name,
            size_bytes=job.size_bytes,
            mime_type=job.mime_type,
            status=job.status.value,
            status_text=job.status_text,
            progress=job.progress,
            remote_document_id=job.remote_document_id,
            last_error=job.last_error,
            error_code=job.error_code,
            validation_errors=job.validation_errors,
            created_at=job.created_at,
            polling_started_at=job.polling_started_at,
            completed_at=job.completed_at,
        )


class JobListResponse(BaseModel):
    """Jobs of one batch in batch order."""

    batch_id: str
    jobs: list[JobResponse]
    total: int


class BatchCreatedResponse(BaseModel):
    """Response schema for a submitted batch."""

    batch_id: str = Field(description="Id to poll the batch's jobs and summary with")
    outcome: BatchOutcome


class BatchCancelledResponse(BaseModel):
    """Response schema for a cancelled batch."""

    batch_id: str
    cancelled: bool
    jobs: list[JobResponse]
