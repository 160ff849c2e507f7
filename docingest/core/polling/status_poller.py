"""
Status poller.

Per-job polling state machine: ``polling -> processed | failed | timed_out``.

Each tick queries the remote status once. Remote sub-phases only move
``status_text`` and ``progress``; a failed query skips the tick and the
loop carries on; the wall-clock budget, measured from the first entry into
polling, forces ``timed_out`` whatever the remote side last said. After a
terminal success the document analysis is fetched once, still inside the
polling task so that cancelling the registry cancels the fetch too.

Dependencies: asyncio (stdlib), docingest.core, docingest.boundary.ingestion
System role: Remote status tracking for submitted jobs
"""

import asyncio
import enum
import logging

from docingest.boundary.ingestion.base import IngestionService
from docingest.boundary.ingestion.schemas import RemoteState, RemoteStatus
from docingest.core.exceptions import (
    PollTimeoutError,
    ProcessingFailure,
    TransientPollError,
)
from docingest.core.polling.poll_registry import PollHandle, PollRegistry
from docingest.core.upload_jobs import transitions
from docingest.core.upload_jobs.job_store import JobStore
from docingest.observability.observer import IngestionObserver

logger = logging.getLogger(__name__)


class TickOutcome(str, enum.Enum):
    """Result of one poll tick."""

    CONTINUE = "continue"
    SKIPPED = "skipped"
    PROCESSED = "processed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"

    @property
    def ends_loop(self) -> bool:
        return self not in (TickOutcome.CONTINUE, TickOutcome.SKIPPED)


class StatusPoller:
    """Drives the polling loop of every submitted job of one session."""

    def __init__(
        self,
        service: IngestionService,
        store: JobStore,
        registry: PollRegistry,
        *,
        interval_seconds: float = 2.0,
        budget_seconds: float = 300.0,
        analysis_timeout_seconds: float = 30.0,
        observer: IngestionObserver | None = None,
    ) -> None:
        """
        Initialize the poller.

        Args:
            service: Remote ingestion service
            store: Job map the poller writes to during the poll phase
            registry: Owner of the polling tasks
            interval_seconds: Delay before each tick
            budget_seconds: Wall-clock budget per job
            analysis_timeout_seconds: Upper bound on the one analysis fetch
            observer: Sink for transient errors and missing analyses
        """
        self._service = service
        self._store = store
        self._registry = registry
        self._interval = interval_seconds
        self._budget = budget_seconds
        self._analysis_timeout = analysis_timeout_seconds
        self._observer = observer or IngestionObserver()
        self._in_flight: set[str] = set()

    @property
    def registry(self) -> PollRegistry:
        return self._registry

    @property
    def budget_seconds(self) -> float:
        return self._budget

    def start(self, job_id: str) -> bool:
        """
        Begin polling a submitted job.

        Idempotent: a job that already has an active handle is left alone.

        Returns:
            bool: True if a new polling loop was started

        Raises:
            KeyError: Unknown job
            ValueError: The job has no remote document id
        """
        job = self._store.jobs[job_id]
        if job.remote_document_id is None:
            raise ValueError(f"Job {job_id} has no remote document id to poll")
        if self._store.sealed or job.is_terminal:
            return False

        handle = self._registry.start(job_id, self._run)
        if handle is None:
            return False

        self._store.apply(job_id, transitions.polling)
        logger.info(
            "Polling started",
            extra={"job_id": job_id, "remote_document_id": job.remote_document_id},
        )
        return True

    async def _run(self, handle: PollHandle) -> None:
        try:
            outcome = TickOutcome.CONTINUE
            while not outcome.ends_loop:
                await asyncio.sleep(self._interval)
                outcome = await self._tick(handle)
            if outcome is TickOutcome.PROCESSED:
                await self._collect_analysis(handle)
        finally:
            self._registry.release(handle)

    async def tick(self, job_id: str) -> TickOutcome:
        """Run one tick for a job with an active handle."""
        handle = self._registry.get(job_id)
        if handle is None:
            return TickOutcome.STOPPED
        return await self._tick(handle)

    async def _tick(self, handle: PollHandle) -> TickOutcome:
        job_id = handle.job_id
        if handle.stopped or self._store.sealed:
            return TickOutcome.STOPPED
        if job_id in self._in_flight:
            logger.debug("Tick skipped for job %s: previous query still in flight", job_id)
            return TickOutcome.SKIPPED

        job = self._store.jobs[job_id]
        if job.is_terminal:
            return TickOutcome.STOPPED

        remaining = self._budget - (self._registry.clock() - handle.started_at)
        if remaining <= 0:
            return self._time_out(handle)

        self._in_flight.add(job_id)
        try:
            status = await self._query(job.remote_document_id, remaining)
        except asyncio.TimeoutError:
            return self._time_out(handle)
        except TransientPollError as e:
            if not handle.stopped:
                self._observer.transient_poll_error(self._store.jobs[job_id], e)
            return TickOutcome.SKIPPED
        finally:
            self._in_flight.discard(job_id)

        if handle.stopped or self._store.sealed:
            return TickOutcome.STOPPED

        return self._apply_status(handle, status)

    async def _query(self, remote_id: str, timeout: float) -> RemoteStatus:
        # Only the budget deadline surfaces as asyncio.TimeoutError
        return await asyncio.wait_for(self._fetch_status(remote_id), timeout=timeout)

    async def _fetch_status(self, remote_id: str) -> RemoteStatus:
        try:
            return await self._service.get_status(remote_id)
        except TransientPollError:
            raise
        except Exception as e:
            raise TransientPollError(f"Status query failed: {e}", remote_id=remote_id) from e

    def _apply_status(self, handle: PollHandle, status: RemoteStatus) -> TickOutcome:
        job_id = handle.job_id

        if status.status is RemoteState.PROCESSED:
            self._store.apply(job_id, transitions.processed)
            return TickOutcome.PROCESSED

        if status.status is RemoteState.FAILED:
            remote_id = self._store.jobs[job_id].remote_document_id
            self._store.apply(job_id, transitions.failed, ProcessingFailure(remote_id=remote_id))
            return TickOutcome.FAILED

        self._store.apply(job_id, transitions.tick, status.status, status.progress)

        if self._registry.clock() - handle.started_at >= self._budget:
            return self._time_out(handle)
        return TickOutcome.CONTINUE

    def _time_out(self, handle: PollHandle) -> TickOutcome:
        elapsed = self._registry.clock() - handle.started_at
        self._store.apply(
            handle.job_id,
            transitions.timed_out,
            PollTimeoutError(elapsed, self._budget),
        )
        logger.warning(
            "Polling budget exhausted",
            extra={"job_id": handle.job_id, "elapsed_seconds": round(elapsed, 3)},
        )
        return TickOutcome.TIMED_OUT

    async def _collect_analysis(self, handle: PollHandle) -> None:
        job_id = handle.job_id
        job = self._store.jobs[job_id]
        if self._store.has_analysis(job_id) or job.remote_document_id is None:
            return

        try:
            analysis = await asyncio.wait_for(
                self._service.get_analysis(job.remote_document_id),
                timeout=self._analysis_timeout,
            )
        except Exception as e:
            if not handle.stopped:
                self._observer.analysis_unavailable(job, e)
            return

        if handle.stopped:
            return
        if analysis is None:
            self._observer.analysis_unavailable(job, None)
            return
        self._store.record_analysis(job_id, analysis)
