"""
Upload orchestrator.

Drives one batch through validate -> encode -> submit and hands every
accepted job to the status poller. Submissions run concurrently and are
joined without fail-fast: one file's failure never affects another.

Dependencies: docingest.core, docingest.boundary.ingestion
System role: Batch submission orchestration
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field

from docingest.boundary.ingestion.base import IngestionService
from docingest.configs.ingestion import IngestionSettings
from docingest.core.encoding import encode_job
from docingest.core.exceptions import SubmitError
from docingest.core.polling.status_poller import StatusPoller
from docingest.core.upload_jobs import transitions
from docingest.core.upload_jobs.job_store import JobStore
from docingest.core.upload_jobs.models import SourceFile, UploadJob, UploadTarget
from docingest.core.upload_jobs.validation import validate_batch_size, validate_file

logger = logging.getLogger(__name__)


class FulfilledUpload(BaseModel):
    """A file the ingestion service accepted."""

    job_id: str
    file_name: str
    size_bytes: int
    remote_document_id: str | None = Field(
        default=None,
        description="None when the service processed the file synchronously",
    )
    status: str


class RejectedUpload(BaseModel):
    """A file that never reached the ingestion service."""

    job_id: str
    file_name: str
    size_bytes: int
    stage: Literal["validation", "submit"]
    reason: str


class BatchOutcome(BaseModel):
    """Settled result of submitting one batch, in batch order."""

    fulfilled: list[FulfilledUpload] = Field(default_factory=list)
    rejected: list[RejectedUpload] = Field(default_factory=list)


class UploadOrchestrator:
    """
    Batch submission orchestrator.

    Owns the validate and submit phases of every job. The poll phase belongs
    to the StatusPoller it hands accepted jobs to.
    """

    def __init__(
        self,
        service: IngestionService,
        store: JobStore,
        poller: StatusPoller,
        settings: IngestionSettings | None = None,
    ) -> None:
        """
        Initialize upload orchestrator.

        Args:
            service: Remote ingestion service
            store: Job map of the owning session
            poller: Poller that takes over submitted jobs
            settings: Validation limits (defaults from environment)
        """
        self.service = service
        self.store = store
        self.poller = poller
        self.settings = settings or IngestionSettings()

    async def submit_batch(
        self,
        files: Sequence[SourceFile],
        target: UploadTarget,
    ) -> BatchOutcome:
        """
        Validate and submit a batch of files.

        Args:
            files: User-selected files, in display order
            target: Container and compliance context attached to every file

        Returns:
            BatchOutcome: Accepted and rejected files

        Raises:
            ValidationError: The batch as a whole is empty or too large
        """
        validate_batch_size(files, self.settings.max_files_per_batch)

        offset = len(self.store)
        jobs = [self._create_job(source, offset + i) for i, source in enumerate(files)]
        for job in jobs:
            self.store.add(job)

        valid_ids: list[str] = []
        for job in jobs:
            reasons = validate_file(job.source, self.settings.max_file_size_bytes)
            if reasons:
                self.store.apply(job.id, transitions.rejected, reasons)
                logger.info(
                    "File rejected by validation",
                    extra={"job_id": job.id, "file_name": job.name, "reasons": reasons},
                )
            else:
                valid_ids.append(job.id)

        logger.info(
            "Submitting batch",
            extra={
                "container_id": target.container_id,
                "file_count": len(jobs),
                "valid_count": len(valid_ids),
            },
        )

        results = await asyncio.gather(
            *(self._submit_one(job_id, target) for job_id in valid_ids),
            return_exceptions=True,
        )
        for job_id, result in zip(valid_ids, results):
            if isinstance(result, Exception):
                logger.error(
                    "Unexpected error while submitting job %s: %s",
                    job_id,
                    result,
                    exc_info=result,
                )

        return self._outcome(jobs)

    @staticmethod
    def _create_job(source: SourceFile, sequence: int) -> UploadJob:
        try:
            return UploadJob.from_source(source, sequence=sequence)
        except OSError as e:
            # Unreadable on disk; validate_file rejects it with a reason
            logger.warning(
                "Could not stat source file",
                extra={"file_name": source.name, "error_msg": str(e)},
            )
            return UploadJob(
                sequence=sequence,
                source=source,
                name=source.name,
                size_bytes=0,
                mime_type=source.content_type,
            )

    async def _submit_one(self, job_id: str, target: UploadTarget) -> None:
        store = self.store
        if store.sealed:
            return

        try:
            job = store.apply(job_id, transitions.encoding)
            document = await encode_job(job, target)
            if store.sealed:
                return
            store.apply(job_id, transitions.submitting)
            receipt = await self.service.submit(document)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e if isinstance(e, SubmitError) else SubmitError(
                f"Upload failed: {e}",
                details={"file_name": store.jobs[job_id].name},
            )
            store.apply(job_id, transitions.failed, error, status_text="Upload failed")
            logger.warning(
                "Submission failed",
                extra={"job_id": job_id, "error_msg": error.message},
            )
            return

        job = store.apply(job_id, transitions.submitted, receipt.remote_id)
        if store.sealed or job.remote_document_id is None:
            return
        self.poller.start(job_id)

    def _outcome(self, jobs: list[UploadJob]) -> BatchOutcome:
        outcome = BatchOutcome()
        for created in jobs:
            job = self.store.jobs[created.id]
            if job.was_submitted:
                outcome.fulfilled.append(
                    FulfilledUpload(
                        job_id=job.id,
                        file_name=job.name,
                        size_bytes=job.size_bytes,
                        remote_document_id=job.remote_document_id,
                        status=job.status.value,
                    )
                )
            elif job.error_code is not None:
                outcome.rejected.append(
                    RejectedUpload(
                        job_id=job.id,
                        file_name=job.name,
                        size_bytes=job.size_bytes,
                        stage="validation" if job.validation_errors else "submit",
                        reason=job.last_error or "Upload failed",
                    )
                )
        return outcome
