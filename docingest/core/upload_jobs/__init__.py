"""
Upload job models.

Exports: UploadJob, UploadStatus, SourceFile, UploadTarget, ComplianceDirectives
"""

from .models import (
    ComplianceDirectives,
    SourceFile,
    TERMINAL_STATUSES,
    UploadJob,
    UploadStatus,
    UploadTarget,
)

__all__ = [
    "ComplianceDirectives",
    "SourceFile",
    "TERMINAL_STATUSES",
    "UploadJob",
    "UploadStatus",
    "UploadTarget",
]
