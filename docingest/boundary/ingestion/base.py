"""
Ingestion service interface.

The orchestrator and poller depend only on this contract; the HTTP client
is one implementation, test fakes are others.

Dependencies: abc (stdlib)
System role: Seam between the ingestion core and the remote service
"""

from abc import ABC, abstractmethod

from docingest.boundary.ingestion.schemas import RemoteStatus, SubmitReceipt
from docingest.core.encoding import EncodedDocument
from docingest.core.insights.models import DocumentAnalysis


class IngestionService(ABC):
    """Remote service that accepts documents and reports their processing."""

    @abstractmethod
    async def submit(self, document: EncodedDocument) -> SubmitReceipt:
        """
        Submit one encoded document.

        Raises:
            SubmitError: Transport or service failure
        """

    @abstractmethod
    async def get_status(self, remote_id: str) -> RemoteStatus:
        """
        Query the processing status of a submitted document.

        Raises:
            TransientPollError: The query itself failed
        """

    @abstractmethod
    async def get_analysis(self, remote_id: str) -> DocumentAnalysis | None:
        """
        Fetch the analysis of a processed document.

        Returns:
            DocumentAnalysis | None: None when no analysis exists yet

        Raises:
            IngestionServiceError: The request failed
        """

    async def aclose(self) -> None:
        """Release transport resources."""
