"""
Encoding transport.

Builds the JSON payload the ingestion API accepts for a base64 upload:
file metadata, the caller's container context, derived tags, compliance
directives and the base64 file content.

Dependencies: pydantic, base64 (stdlib)
System role: Wire representation of one submitted file
"""

import asyncio
import base64
import re

from pydantic import BaseModel, Field

from docingest.core.upload_jobs.models import ComplianceDirectives, UploadJob, UploadTarget


class EncodedDocument(BaseModel):
    """Payload of one base64 document submission."""

    name: str
    description: str
    notebook_id: str
    file_name: str
    mime_type: str
    file_content: str = Field(repr=False, description="Base64-encoded file bytes")
    tags: list[str] = Field(default_factory=list)
    compliance: ComplianceDirectives = Field(default_factory=ComplianceDirectives)
    client_job_id: str | None = None

    @property
    def content_length(self) -> int:
        return len(self.file_content)


def container_tag(container_name: str) -> str:
    """``"Q3 Reports"`` -> ``"notebook:q3_reports"``."""
    return "notebook:" + re.sub(r"\s+", "_", container_name.strip()).lower()


def build_tags(target: UploadTarget) -> list[str]:
    tags: list[str] = []
    if target.container_name:
        tags.append(container_tag(target.container_name))
    tags.append("document")
    for tag in target.tags:
        if tag not in tags:
            tags.append(tag)
    return tags


def encode_content(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def encode_document(job: UploadJob, data: bytes, target: UploadTarget) -> EncodedDocument:
    """
    Encode one job's bytes with its submission context.

    Args:
        job: Job being submitted
        data: Raw file content
        target: Caller-supplied container and compliance context

    Returns:
        EncodedDocument: Payload ready for IngestionService.submit
    """
    return EncodedDocument(
        name=job.name,
        description=f"Uploaded document: {job.name}",
        notebook_id=target.container_id,
        file_name=job.name,
        mime_type=job.mime_type,
        file_content=encode_content(data),
        tags=build_tags(target),
        compliance=target.compliance,
        client_job_id=job.id,
    )


async def encode_job(job: UploadJob, target: UploadTarget) -> EncodedDocument:
    """Read and encode a job's source file without blocking the event loop."""
    if job.source is None:
        raise ValueError(f"Job {job.id} has no source file")
    data = await asyncio.to_thread(job.source.read_bytes)
    return await asyncio.to_thread(encode_document, job, data, target)
