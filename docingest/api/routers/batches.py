"""
Batch upload API endpoints.

Routes:
- POST /batches - Submit a batch of files (multipart)
- POST /batches/{id}/files - Submit more files into an existing batch
- GET /batches/{id}/jobs - List the batch's jobs
- GET /batches/{id}/jobs/{job_id} - Get one job
- GET /batches/{id}/summary - Recompute the batch summary
- DELETE /batches/{id} - Stop tracking the batch

Jobs keep processing in the background after the POST returns; clients poll
the jobs and summary routes.

Dependencies: fastapi, docingest.application.services, docingest.models
System role: Batch ingestion HTTP API
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from docingest.api.deps import BatchSessionManager, get_session_manager
from docingest.application.services.ingestion_session import IngestionSession
from docingest.application.services.upload_orchestrator import BatchOutcome
from docingest.core.exceptions import SessionClosedError, ValidationError
from docingest.core.insights.models import BatchSummary
from docingest.core.upload_jobs.models import (
    ComplianceDirectives,
    SourceFile,
    UploadTarget,
)
from docingest.models.batch import (
    BatchCancelledResponse,
    BatchCreatedResponse,
    JobListResponse,
    JobResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/batches", tags=["batches"])


async def _read_sources(files: list[UploadFile]) -> list[SourceFile]:
    sources = []
    for upload in files:
        data = await upload.read()
        sources.append(
            SourceFile(
                name=upload.filename or "upload",
                data=data,
                mime_type=upload.content_type,
            )
        )
    return sources


def _build_target(
    container_id: str,
    container_name: str | None,
    redaction_enabled: bool,
    tags: list[str] | None,
) -> UploadTarget:
    return UploadTarget(
        container_id=container_id,
        container_name=container_name,
        tags=tags or [],
        compliance=ComplianceDirectives(content_redaction=redaction_enabled),
    )


def _get_session_or_404(manager: BatchSessionManager, batch_id: str) -> IngestionSession:
    session = manager.get(batch_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Batch {batch_id} not found")
    return session


async def _submit(
    session: IngestionSession,
    files: list[UploadFile],
    target: UploadTarget,
) -> BatchOutcome:
    sources = await _read_sources(files)
    try:
        return await session.submit_batch(sources, target)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except SessionClosedError as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.post("", response_model=BatchCreatedResponse, status_code=201)
async def create_batch(
    files: list[UploadFile] = File(..., description="Files to ingest"),
    container_id: str = Form(..., description="Target notebook/container id"),
    container_name: str | None = Form(None),
    redaction_enabled: bool = Form(False),
    tags: list[str] | None = Form(None),
    manager: BatchSessionManager = Depends(get_session_manager),
) -> BatchCreatedResponse:
    """
    Submit a batch of files for ingestion.

    Every file is validated first; valid files are encoded and submitted
    concurrently, then tracked in the background until a terminal status.

    Args:
        files: Uploaded files
        container_id: Target notebook/container id
        container_name: Container display name, used for the notebook tag
        redaction_enabled: Ask the service to redact content
        tags: Extra tags for every file
        manager: Injected BatchSessionManager

    Returns:
        BatchCreatedResponse: Batch id plus accepted and rejected files

    Raises:
        HTTPException(400): Empty batch or too many files
    """
    target = _build_target(container_id, container_name, redaction_enabled, tags)
    batch_id, session = manager.create()
    logger.info(
        "Batch created",
        extra={"batch_id": batch_id, "container_id": container_id, "file_count": len(files)},
    )

    try:
        outcome = await _submit(session, files, target)
    except HTTPException:
        manager.discard(batch_id)
        raise
    return BatchCreatedResponse(batch_id=batch_id, outcome=outcome)


@router.post("/{batch_id}/files", response_model=BatchCreatedResponse)
async def add_files(
    batch_id: str,
    files: list[UploadFile] = File(...),
    container_id: str = Form(...),
    container_name: str | None = Form(None),
    redaction_enabled: bool = Form(False),
    tags: list[str] | None = Form(None),
    manager: BatchSessionManager = Depends(get_session_manager),
) -> BatchCreatedResponse:
    """
    Submit more files into an existing batch.

    Raises:
        HTTPException(400): Empty or oversized file list
        HTTPException(404): Unknown batch
        HTTPException(409): Batch already cancelled
    """
    session = _get_session_or_404(manager, batch_id)
    target = _build_target(container_id, container_name, redaction_enabled, tags)
    outcome = await _submit(session, files, target)
    return BatchCreatedResponse(batch_id=batch_id, outcome=outcome)


@router.get("/{batch_id}/jobs", response_model=JobListResponse)
async def list_jobs(
    batch_id: str,
    manager: BatchSessionManager = Depends(get_session_manager),
) -> JobListResponse:
    """List a batch's jobs in batch order."""
    session = _get_session_or_404(manager, batch_id)
    jobs = sorted(session.jobs.values(), key=lambda job: job.sequence)
    return JobListResponse(
        batch_id=batch_id,
        jobs=[JobResponse.from_job(job) for job in jobs],
        total=len(jobs),
    )


@router.get("/{batch_id}/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    batch_id: str,
    job_id: str,
    manager: BatchSessionManager = Depends(get_session_manager),
) -> JobResponse:
    """
    Get one job's status and progress.

    Raises:
        HTTPException(404): Unknown batch or job
    """
    session = _get_session_or_404(manager, batch_id)
    job = session.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return JobResponse.from_job(job)


@router.get("/{batch_id}/summary", response_model=BatchSummary)
async def get_summary(
    batch_id: str,
    manager: BatchSessionManager = Depends(get_session_manager),
) -> BatchSummary:
    """Recompute the batch summary from the jobs' current state."""
    session = _get_session_or_404(manager, batch_id)
    return session.summary()


@router.delete("/{batch_id}", response_model=BatchCancelledResponse)
async def cancel_batch(
    batch_id: str,
    manager: BatchSessionManager = Depends(get_session_manager),
) -> BatchCancelledResponse:
    """
    Stop tracking a batch.

    Remote processing is not cancelled. The batch stays readable, with
    every job frozen in its last observed state.
    """
    session = manager.cancel(batch_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Batch {batch_id} not found")
    logger.info("Batch cancelled", extra={"batch_id": batch_id})
    jobs = sorted(session.jobs.values(), key=lambda job: job.sequence)
    return BatchCancelledResponse(
        batch_id=batch_id,
        cancelled=session.closed,
        jobs=[JobResponse.from_job(job) for job in jobs],
    )
