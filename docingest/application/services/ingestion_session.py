"""
Ingestion session.

Caller-owned lifetime scope of one or more upload batches. A session wires
a JobStore, a PollRegistry, a StatusPoller and an UploadOrchestrator around
one IngestionService. Leaving the ``async with`` block, or calling
``cancel_all`` directly, stops every polling task and seals the job map.

Usage:
    async with IngestionSession(service) as session:
        outcome = await session.submit_batch(files, target)
        await session.wait_until_settled()
        summary = session.summary()

Dependencies: docingest.core, docingest.configs, docingest.observability
System role: Public entry point of the orchestrator
"""

import logging
import time
from collections.abc import Callable, Mapping, Sequence

from docingest.application.services.upload_orchestrator import BatchOutcome, UploadOrchestrator
from docingest.boundary.ingestion.base import IngestionService
from docingest.configs.ingestion import IngestionSettings
from docingest.core.exceptions import SessionClosedError
from docingest.core.insights.aggregator import aggregate_insights
from docingest.core.insights.models import BatchSummary, DocumentAnalysis
from docingest.core.polling.poll_registry import PollRegistry
from docingest.core.polling.status_poller import StatusPoller
from docingest.core.upload_jobs.job_store import JobStore
from docingest.core.upload_jobs.models import SourceFile, UploadJob, UploadTarget
from docingest.observability.observer import IngestionObserver, LoggingObserver

logger = logging.getLogger(__name__)


class IngestionSession:
    """Scope object exposing submission, job reads, the summary and cancellation."""

    def __init__(
        self,
        service: IngestionService,
        settings: IngestionSettings | None = None,
        observer: IngestionObserver | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize ingestion session.

        Args:
            service: Remote ingestion service
            settings: Limits, polling cadence and summary thresholds
            observer: Event sink (LoggingObserver when omitted)
            clock: Monotonic clock used for the polling budget
        """
        self.settings = settings or IngestionSettings()
        self.observer = observer or LoggingObserver()
        self.store = JobStore(observer=self.observer)
        self.registry = PollRegistry(clock=clock)
        self.poller = StatusPoller(
            service,
            self.store,
            self.registry,
            interval_seconds=self.settings.poll_interval_seconds,
            budget_seconds=self.settings.poll_budget_seconds,
            analysis_timeout_seconds=self.settings.analysis_timeout_seconds,
            observer=self.observer,
        )
        self.orchestrator = UploadOrchestrator(service, self.store, self.poller, self.settings)

    async def __aenter__(self) -> "IngestionSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel_all()

    @property
    def closed(self) -> bool:
        return self.store.sealed

    @property
    def jobs(self) -> Mapping[str, UploadJob]:
        """Read-only job map keyed by job id."""
        return self.store.jobs

    @property
    def analyses(self) -> Mapping[str, DocumentAnalysis]:
        return self.store.analyses

    def get_job(self, job_id: str) -> UploadJob | None:
        return self.store.get(job_id)

    async def submit_batch(
        self,
        files: Sequence[SourceFile],
        target: UploadTarget,
    ) -> BatchOutcome:
        """
        Submit a batch of files and start tracking them.

        Returns as soon as every file is either rejected or submitted;
        polling continues in the background.

        Raises:
            SessionClosedError: The session was cancelled
            ValidationError: The batch as a whole is empty or too large
        """
        if self.closed:
            raise SessionClosedError("Ingestion session has been cancelled")
        return await self.orchestrator.submit_batch(files, target)

    def summary(self) -> BatchSummary:
        """Recompute the batch summary from the current job map."""
        return aggregate_insights(
            self.store.jobs,
            self.store.analyses,
            topic_limit=self.settings.topic_display_limit,
            entity_limit=self.settings.entity_display_limit,
            high_confidence=self.settings.high_confidence_threshold,
            moderate_confidence=self.settings.moderate_confidence_threshold,
        )

    async def wait_until_settled(self) -> None:
        """Wait until no job is being polled any more."""
        await self.registry.join()

    def cancel_all(self) -> None:
        """
        Stop every polling task and freeze the job map.

        Synchronous and idempotent. Remote processing is not cancelled; only
        its local tracking stops. Jobs still in flight keep their status and
        read "Tracking cancelled".
        """
        if self.closed:
            return
        stopped = self.registry.stop_all()
        self.store.seal()
        logger.info(
            "Ingestion session cancelled",
            extra={"stopped_polls": stopped, "job_count": len(self.store)},
        )
