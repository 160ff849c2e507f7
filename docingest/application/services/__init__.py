"""Service orchestrators."""

from .ingestion_session import IngestionSession
from .upload_orchestrator import (
    BatchOutcome,
    FulfilledUpload,
    RejectedUpload,
    UploadOrchestrator,
)

__all__ = [
    "BatchOutcome",
    "FulfilledUpload",
    "IngestionSession",
    "RejectedUpload",
    "UploadOrchestrator",
]
