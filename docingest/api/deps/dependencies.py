"""
Dependency injection container.

Holds one IngestionSession per batch and the ingestion service they share.
Settled or cancelled batches are kept readable for batch_retention_seconds
after their last access, then evicted on the next create().

Dependencies: docingest.configs, docingest.application, docingest.boundary
System role: DI container for batch sessions
"""

import logging
import time
import uuid
from collections.abc import Callable
from functools import lru_cache

from docingest.application.services.ingestion_session import IngestionSession
from docingest.boundary.ingestion.base import IngestionService
from docingest.boundary.ingestion.http_client import HttpIngestionClient
from docingest.configs import Settings, get_settings
from docingest.observability.observer import IngestionObserver

logger = logging.getLogger(__name__)


class BatchSessionManager:
    """Registry of live batch sessions keyed by batch id."""

    def __init__(
        self,
        settings: Settings | None = None,
        service_factory: Callable[[], IngestionService] | None = None,
        observer: IngestionObserver | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the manager.

        Args:
            settings: Application settings (defaults to get_settings())
            service_factory: Builds the shared ingestion service on first use
            observer: Observer handed to every session
            clock: Monotonic clock used for batch retention
        """
        self.settings = settings or get_settings()
        self._service_factory = service_factory or (
            lambda: HttpIngestionClient.from_settings(self.settings.service)
        )
        self._service: IngestionService | None = None
        self._observer = observer
        self._clock = clock
        self._sessions: dict[str, IngestionSession] = {}
        self._last_access: dict[str, float] = {}

    @property
    def service(self) -> IngestionService:
        """Get the shared ingestion service."""
        if self._service is None:
            self._service = self._service_factory()
        return self._service

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, batch_id: object) -> bool:
        return batch_id in self._sessions

    def create(self) -> tuple[str, IngestionSession]:
        self.prune()
        batch_id = str(uuid.uuid4())
        session = IngestionSession(
            self.service,
            settings=self.settings.ingestion,
            observer=self._observer,
        )
        self._sessions[batch_id] = session
        self._last_access[batch_id] = self._clock()
        return batch_id, session

    def get(self, batch_id: str) -> IngestionSession | None:
        session = self._sessions.get(batch_id)
        if session is not None:
            self._last_access[batch_id] = self._clock()
        return session

    def discard(self, batch_id: str) -> IngestionSession | None:
        """Cancel a batch and forget it immediately."""
        session = self._sessions.pop(batch_id, None)
        self._last_access.pop(batch_id, None)
        if session is not None:
            session.cancel_all()
        return session

    def cancel(self, batch_id: str) -> IngestionSession | None:
        """Cancel one batch. The session stays readable until evicted."""
        session = self.get(batch_id)
        if session is not None:
            session.cancel_all()
        return session

    def cancel_all(self) -> int:
        cancelled = 0
        for session in self._sessions.values():
            if not session.closed:
                session.cancel_all()
                cancelled += 1
        return cancelled

    def prune(self) -> int:
        """
        Evict idle batches that have nothing left to track.

        A batch is evictable once it is cancelled or none of its jobs is
        still being polled, and it has not been accessed for
        batch_retention_seconds.

        Returns:
            int: Number of evicted batches
        """
        retention = self.settings.ingestion.batch_retention_seconds
        now = self._clock()
        expired = [
            batch_id
            for batch_id, session in self._sessions.items()
            if (session.closed or len(session.registry) == 0)
            and now - self._last_access[batch_id] >= retention
        ]
        for batch_id in expired:
            self.discard(batch_id)
        if expired:
            logger.info("Evicted %d idle batch session(s)", len(expired))
        return len(expired)

    async def aclose(self) -> None:
        """Cancel every session and release the shared service."""
        cancelled = self.cancel_all()
        if cancelled:
            logger.info("Cancelled %d batch session(s) on shutdown", cancelled)
        if self._service is not None:
            await self._service.aclose()
            self._service = None


@lru_cache
def get_session_manager() -> BatchSessionManager:
    """Get batch session manager singleton."""
    return BatchSessionManager()
