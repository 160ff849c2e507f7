"""
Upload job domain models.

Represents one file's tracked submission-and-processing life cycle, the
file reference it was created from, and the caller context attached to
every submission.

Dependencies: pydantic
System role: Value records shared by the orchestrator, poller and aggregator
"""

import enum
import mimetypes
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_MIME_TYPE = "application/octet-stream"


class UploadStatus(str, enum.Enum):
    """
    Upload job states.

    PENDING: Created and validated, not yet touched by the network
    ENCODING: File bytes being converted to the wire representation
    SUBMITTING: Submission request in flight
    SUBMITTED: Remote id received, polling not yet started
    POLLING: Remote processing tracked by the status poller
    PROCESSED: Terminal success
    FAILED: Terminal failure (validation, submit or remote processing)
    TIMED_OUT: Wall-clock budget exhausted; remote work may still be running
    """

    PENDING = "pending"
    ENCODING = "encoding"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    POLLING = "polling"
    PROCESSED = "processed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        """True for statuses with no further automatic transition."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {UploadStatus.PROCESSED, UploadStatus.FAILED, UploadStatus.TIMED_OUT}
)


@dataclass(frozen=True)
class SourceFile:
    """
    A user-selected file, held either in memory or on disk.

    Attributes:
        name: Display name (usually the original filename)
        data: In-memory content, mutually exclusive with path
        path: Location on disk, mutually exclusive with data
        mime_type: Declared MIME type; guessed from the name when omitted
    """

    name: str
    data: bytes | None = None
    path: Path | None = None
    mime_type: str | None = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.path is None):
            raise ValueError("Exactly one of data or path must be provided")

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "SourceFile":
        """Create a disk-backed source file named after the path."""
        path = Path(path)
        return cls(name=path.name, path=path, mime_type=mime_type)

    @property
    def size_bytes(self) -> int:
        if self.data is not None:
            return len(self.data)
        return self.path.stat().st_size

    @property
    def content_type(self) -> str:
        if self.mime_type:
            return self.mime_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or DEFAULT_MIME_TYPE

    def read_bytes(self) -> bytes:
        """Return the full file content (blocking for disk-backed files)."""
        if self.data is not None:
            return self.data
        return self.path.read_bytes()


class ComplianceDirectives(BaseModel):
    """Compliance and redaction directives forwarded with each submission."""

    pii_detection: bool = True
    content_redaction: bool = False
    hipaa_compliance: bool = False
    data_classification: str = "internal"
    compliance_frameworks: list[str] = Field(default_factory=lambda: ["SOC2"])


class UploadTarget(BaseModel):
    """Caller-supplied context attached to every file of a batch."""

    container_id: str = Field(description="Target notebook/container id")
    container_name: str | None = Field(
        default=None,
        description="Display name of the container, used to derive tags",
    )
    tags: list[str] = Field(default_factory=list, description="Extra tags for every file")
    compliance: ComplianceDirectives = Field(default_factory=ComplianceDirectives)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadJob(BaseModel):
    """
    Observable state of one file in a batch.

    Instances are immutable; every change goes through a transition function
    that returns a new instance (see transitions.py).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sequence: int = Field(default=0, description="Position of the file in its batch")
    source: SourceFile | None = Field(default=None, exclude=True, repr=False)
    name: str
    size_bytes: int
    mime_type: str = DEFAULT_MIME_TYPE
    status: UploadStatus = UploadStatus.PENDING
    remote_document_id: str | None = None
    last_error: str | None = None
    error_code: str | None = None
    validation_errors: list[str] = Field(default_factory=list)
    status_text: str = "Waiting to upload"
    progress: int = Field(default=0, ge=0, le=100)
    created_at: datetime = Field(default_factory=_utcnow)
    polling_started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_source(cls, source: SourceFile, sequence: int = 0) -> "UploadJob":
        return cls(
            sequence=sequence,
            source=source,
            name=source.name,
            size_bytes=source.size_bytes,
            mime_type=source.content_type,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def was_submitted(self) -> bool:
        """True once the remote service accepted the file."""
        return self.remote_document_id is not None or self.status == UploadStatus.PROCESSED
