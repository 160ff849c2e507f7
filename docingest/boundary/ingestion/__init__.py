"""
Ingestion service boundary.

Exports: IngestionService, HttpIngestionClient, RemoteState, RemoteStatus, SubmitReceipt
"""

from .schemas import RemoteState, RemoteStatus, SubmitReceipt
from .base import IngestionService
from .http_client import HttpIngestionClient

__all__ = [
    "HttpIngestionClient",
    "IngestionService",
    "RemoteState",
    "RemoteStatus",
    "SubmitReceipt",
]
