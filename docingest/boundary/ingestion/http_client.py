"""
HTTP client for the remote ingestion API.

Routes:
- POST /documents/upload-base64 - submit an encoded document
- GET /documents/{id} - processing status
- GET /documents/{id}/analysis - analysis summary of a processed document

Responses may wrap their body in ``{"data": ...}``; both shapes are accepted.

Dependencies: httpx
System role: Transport implementation of IngestionService
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from docingest.boundary.ingestion.base import IngestionService
from docingest.boundary.ingestion.schemas import RemoteState, RemoteStatus, SubmitReceipt
from docingest.configs.service import IngestionServiceSettings
from docingest.core.encoding import EncodedDocument
from docingest.core.exceptions import IngestionServiceError, SubmitError, TransientPollError
from docingest.core.insights.models import DocumentAnalysis

logger = logging.getLogger(__name__)

# Remote spellings folded onto the four contract states
_STATE_ALIASES = {
    "pending": RemoteState.UPLOADING,
    "queued": RemoteState.UPLOADING,
    "uploaded": RemoteState.UPLOADING,
    "uploading": RemoteState.UPLOADING,
    "processing": RemoteState.PROCESSING,
    "running": RemoteState.PROCESSING,
    "processed": RemoteState.PROCESSED,
    "completed": RemoteState.PROCESSED,
    "failed": RemoteState.FAILED,
    "error": RemoteState.FAILED,
}


def _unwrap(body: Any) -> dict[str, Any]:
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    if isinstance(body, dict):
        return body
    return {}


def parse_remote_state(raw: str | None) -> RemoteState:
    """Map a remote status string onto RemoteState; unknown values count as processing."""
    if not raw:
        return RemoteState.PROCESSING
    return _STATE_ALIASES.get(raw.strip().lower(), RemoteState.PROCESSING)


class HttpIngestionClient(IngestionService):
    """Ingestion API client over httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. ``https://ingest.example.com/api/v1``
            api_key: Optional bearer token
            timeout: Per-request timeout in seconds
            http_client: Pre-built client (tests pass one with a MockTransport)
        """
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._base_url = base_url.rstrip("/")
        self._headers = headers
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: IngestionServiceSettings) -> "HttpIngestionClient":
        return cls(
            settings.base_url,
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
        )

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def submit(self, document: EncodedDocument) -> SubmitReceipt:
        try:
            response = await self._client.post(
                self._url("/documents/upload-base64"),
                json=document.model_dump(mode="json"),
                headers=self._headers,
            )
            response.raise_for_status()
            data = _unwrap(response.json())
        except httpx.HTTPStatusError as e:
            raise SubmitError(
                f"Upload rejected with status {e.response.status_code}",
                details={"file_name": document.file_name, "body": e.response.text[:200]},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise SubmitError(
                f"Upload failed: {e}",
                details={"file_name": document.file_name},
            ) from e

        remote_id = data.get("id") or data.get("document_id")
        try:
            return SubmitReceipt(
                remote_id=str(remote_id) if remote_id else None,
                size_bytes=data.get("size") or data.get("size_bytes"),
                created_at=data.get("created_at"),
            )
        except PydanticValidationError as e:
            raise SubmitError(
                "Upload response could not be parsed",
                details={"file_name": document.file_name},
            ) from e

    async def get_status(self, remote_id: str) -> RemoteStatus:
        try:
            response = await self._client.get(
                self._url(f"/documents/{remote_id}"),
                headers=self._headers,
            )
            response.raise_for_status()
            data = _unwrap(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise TransientPollError(f"Status query failed: {e}", remote_id=remote_id) from e

        raw_state = data.get("processing_status") or data.get("status")
        progress = data.get("progress")
        if isinstance(progress, (int, float)):
            progress = max(0, min(int(progress), 100))
        else:
            progress = None
        return RemoteStatus(status=parse_remote_state(raw_state), progress=progress)

    async def get_analysis(self, remote_id: str) -> DocumentAnalysis | None:
        try:
            response = await self._client.get(
                self._url(f"/documents/{remote_id}/analysis"),
                headers=self._headers,
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = _unwrap(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise IngestionServiceError(
                f"Analysis fetch failed: {e}",
                operation="get_analysis",
                details={"remote_id": remote_id},
            ) from e

        analysis = data.get("analysis", data if "total_chunks" in data else None)
        if not analysis:
            return None
        try:
            return DocumentAnalysis.model_validate(analysis)
        except PydanticValidationError as e:
            raise IngestionServiceError(
                "Analysis response could not be parsed",
                operation="get_analysis",
                details={"remote_id": remote_id},
            ) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
