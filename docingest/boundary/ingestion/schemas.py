"""
Ingestion service contract schemas.

Shapes returned by the remote ingestion service, independent of the
transport used to reach it.

Dependencies: pydantic
System role: Data validation and contract definition
"""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RemoteState(str, enum.Enum):
    """Processing states reported by the ingestion service."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RemoteState.PROCESSED, RemoteState.FAILED)


class SubmitReceipt(BaseModel):
    """Response to a document submission."""

    model_config = ConfigDict(frozen=True)

    remote_id: str | None = Field(
        default=None,
        description="Remote document id; absent when processed synchronously",
    )
    size_bytes: int | None = None
    created_at: datetime | None = None


class RemoteStatus(BaseModel):
    """One status observation for a remote document."""

    model_config = ConfigDict(frozen=True)

    status: RemoteState
    progress: int | None = Field(default=None, ge=0, le=100)
