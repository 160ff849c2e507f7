"""
Test suite for StatusPoller.

Tests the per-job polling machine against a scripted ingestion service:
terminal outcomes, transient errors, the wall-clock budget, cancellation
of in-flight queries, non-reentrant ticks and the single analysis fetch.

System role: Verification of remote status tracking
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from docingest.boundary.ingestion.schemas import RemoteState, RemoteStatus
from docingest.core.exceptions import IngestionServiceError, TransientPollError
from docingest.core.insights.models import DocumentAnalysis
from docingest.core.polling.poll_registry import PollRegistry
from docingest.core.polling.status_poller import StatusPoller, TickOutcome
from docingest.core.upload_jobs import transitions
from docingest.core.upload_jobs.job_store import JobStore
from docingest.core.upload_jobs.models import UploadJob, UploadStatus
from docingest.observability.observer import IngestionObserver


class ProgressRecorder(IngestionObserver):
    """Observer remembering every (status, progress) pair it saw."""

    def __init__(self) -> None:
        self.history: list[tuple[UploadStatus, int]] = []

    def job_updated(self, job: UploadJob) -> None:
        self.history.append((job.status, job.progress))


def _status(state: RemoteState, progress: int | None = None) -> RemoteStatus:
    return RemoteStatus(status=state, progress=progress)


def _submitted_job(store: JobStore, remote_id: str = "remote-1") -> str:
    job = store.add(UploadJob(name="report.pdf", size_bytes=10))
    store.apply(job.id, transitions.submitted, remote_id)
    return job.id


async def _wait_for_calls(service, count: int = 1) -> None:
    for _ in range(200):
        if len(service.status_calls) >= count:
            return
        await asyncio.sleep(0.001)
    raise AssertionError("status query was never issued")


@pytest.fixture
def recorder() -> ProgressRecorder:
    """Provide a recording observer for the store."""
    return ProgressRecorder()


@pytest.fixture
def store(recorder: ProgressRecorder) -> JobStore:
    """Provide an empty job store."""
    return JobStore(observer=recorder)


@pytest.fixture
def poller_observer() -> MagicMock:
    """Provide a mock observer for poller side-channel events."""
    return MagicMock(spec=IngestionObserver)


def _make_poller(service, store, registry=None, observer=None, **kwargs) -> StatusPoller:
    kwargs.setdefault("interval_seconds", 0.001)
    kwargs.setdefault("budget_seconds", 5.0)
    if registry is None:
        registry = PollRegistry()
    return StatusPoller(service, store, registry, observer=observer, **kwargs)


class TestStatusPollerTerminalOutcomes:
    """Test suite for the processed and failed outcomes."""

    @pytest.mark.asyncio
    async def test_processed_should_complete_job_and_fetch_analysis(
        self, scripted_service, store: JobStore, recorder: ProgressRecorder
    ) -> None:
        """Test sub-phases raise progress and the analysis is recorded once."""
        # Arrange
        analysis = DocumentAnalysis(total_chunks=4, avg_confidence=0.9, main_topics=["tax"])
        scripted_service.status_scripts["remote-1"] = [
            _status(RemoteState.UPLOADING),
            _status(RemoteState.PROCESSING, 70),
            _status(RemoteState.PROCESSING, 20),
            _status(RemoteState.PROCESSED),
        ]
        scripted_service.analyses["remote-1"] = analysis
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store)

        # Act
        assert poller.start(job_id) is True
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        # Assert
        job = store.jobs[job_id]
        assert job.status == UploadStatus.PROCESSED
        assert job.progress == 100
        assert store.analyses[job_id] == analysis
        assert scripted_service.analysis_calls == ["remote-1"]
        progresses = [progress for _, progress in recorder.history]
        assert progresses == sorted(progresses)
        assert (UploadStatus.POLLING, 70) in recorder.history

    @pytest.mark.asyncio
    async def test_remote_failure_should_fail_job_without_analysis(
        self, scripted_service, store: JobStore
    ) -> None:
        """Test a failed remote status is terminal and skips the analysis fetch."""
        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.FAILED)]
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store)

        poller.start(job_id)
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        job = store.jobs[job_id]
        assert job.status == UploadStatus.FAILED
        assert job.last_error == "Remote processing failed"
        assert job.error_code == "processing_failure"
        assert scripted_service.analysis_calls == []

    @pytest.mark.asyncio
    async def test_missing_analysis_should_be_reported_to_observer(
        self, scripted_service, store: JobStore, poller_observer: MagicMock
    ) -> None:
        """Test a processed job without analysis stays processed."""
        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.PROCESSED)]
        scripted_service.analyses["remote-1"] = None
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store, observer=poller_observer)

        poller.start(job_id)
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        assert store.jobs[job_id].status == UploadStatus.PROCESSED
        assert not store.has_analysis(job_id)
        poller_observer.analysis_unavailable.assert_called_once_with(store.jobs[job_id], None)

    @pytest.mark.asyncio
    async def test_analysis_error_should_not_affect_job(
        self, scripted_service, store: JobStore, poller_observer: MagicMock
    ) -> None:
        """Test an analysis fetch failure is reported, not raised."""
        error = IngestionServiceError("Analysis fetch failed", operation="get_analysis")
        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.PROCESSED)]
        scripted_service.analyses["remote-1"] = error
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store, observer=poller_observer)

        poller.start(job_id)
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        assert store.jobs[job_id].status == UploadStatus.PROCESSED
        poller_observer.analysis_unavailable.assert_called_once_with(store.jobs[job_id], error)

    @pytest.mark.asyncio
    async def test_hanging_analysis_fetch_should_be_bounded(
        self, scripted_service, store: JobStore, poller_observer: MagicMock
    ) -> None:
        """Test an analysis fetch that never answers still releases the handle."""

        async def never_answers(remote_id: str):
            await asyncio.Event().wait()

        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.PROCESSED)]
        scripted_service.get_analysis = never_answers
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store, observer=poller_observer, analysis_timeout_seconds=0.05)

        poller.start(job_id)
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        assert store.jobs[job_id].status == UploadStatus.PROCESSED
        assert len(poller.registry) == 0
        assert not store.has_analysis(job_id)
        poller_observer.analysis_unavailable.assert_called_once()


class TestStatusPollerTransientErrors:
    """Test suite for failed status queries."""

    @pytest.mark.asyncio
    async def test_failed_queries_should_skip_ticks_and_continue(
        self, scripted_service, store: JobStore, poller_observer: MagicMock
    ) -> None:
        """Test query errors are emitted and polling carries on."""
        scripted_service.status_scripts["remote-1"] = [
            RuntimeError("connection reset"),
            TransientPollError("503 from service", remote_id="remote-1"),
            _status(RemoteState.PROCESSED),
        ]
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store, observer=poller_observer)

        poller.start(job_id)
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        assert store.jobs[job_id].status == UploadStatus.PROCESSED
        assert store.jobs[job_id].last_error is None
        assert poller_observer.transient_poll_error.call_count == 2
        wrapped = poller_observer.transient_poll_error.call_args_list[0].args[1]
        assert isinstance(wrapped, TransientPollError)
        assert "connection reset" in wrapped.message

    @pytest.mark.asyncio
    async def test_service_timeout_should_skip_tick_not_time_out_job(
        self, scripted_service, store: JobStore, poller_observer: MagicMock
    ) -> None:
        """Test a TimeoutError raised by the service is a transient error, not the budget."""
        # Arrange
        scripted_service.status_scripts["remote-1"] = [
            TimeoutError("read timed out"),
            _status(RemoteState.PROCESSING),
            _status(RemoteState.PROCESSED),
        ]
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store, observer=poller_observer)

        # Act
        poller.start(job_id)
        await asyncio.wait_for(poller.registry.join(), timeout=2.0)

        # Assert
        job = store.jobs[job_id]
        assert job.status == UploadStatus.PROCESSED
        assert job.error_code is None
        assert len(scripted_service.status_calls) == 3
        wrapped = poller_observer.transient_poll_error.call_args.args[1]
        assert isinstance(wrapped, TransientPollError)
        assert "read timed out" in wrapped.message


class TestStatusPollerBudget:
    """Test suite for the wall-clock budget."""

    @pytest.mark.asyncio
    async def test_budget_should_force_timed_out(self, scripted_service, store: JobStore, step_clock) -> None:
        """Test a job stuck in processing times out with no handle left."""
        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.PROCESSING)]
        job_id = _submitted_job(store)
        registry = PollRegistry(clock=step_clock)
        poller = _make_poller(scripted_service, store, registry, budget_seconds=3.0)

        poller.start(job_id)
        await asyncio.wait_for(registry.join(), timeout=2.0)

        job = store.jobs[job_id]
        assert job.status == UploadStatus.TIMED_OUT
        assert job.error_code == "poll_timeout"
        assert len(registry) == 0
        assert scripted_service.analysis_calls == []

    @pytest.mark.asyncio
    async def test_hanging_query_should_be_bounded_by_budget(self, scripted_service, store: JobStore) -> None:
        """Test a status query that never answers cannot outlive the budget."""
        scripted_service.status_gate = asyncio.Event()
        job_id = _submitted_job(store)
        registry = PollRegistry()
        poller = _make_poller(scripted_service, store, registry, budget_seconds=0.05)

        poller.start(job_id)
        await asyncio.wait_for(registry.join(), timeout=2.0)

        assert store.jobs[job_id].status == UploadStatus.TIMED_OUT
        assert len(registry) == 0


class TestStatusPollerLifecycle:
    """Test suite for start, cancellation and non-reentrancy."""

    @pytest.mark.asyncio
    async def test_start_should_be_idempotent(self, scripted_service, store: JobStore) -> None:
        """Test a second start for the same job is a no-op."""
        job_id = _submitted_job(store)
        registry = PollRegistry()
        poller = _make_poller(scripted_service, store, registry, interval_seconds=60)

        assert poller.start(job_id) is True
        assert poller.start(job_id) is False
        assert len(registry) == 1
        assert store.jobs[job_id].status == UploadStatus.POLLING

        registry.stop_all()

    def test_start_without_remote_id_should_raise(self, scripted_service, store: JobStore) -> None:
        """Test polling needs a remote document id."""
        job = store.add(UploadJob(name="report.pdf", size_bytes=1))
        poller = _make_poller(scripted_service, store)

        with pytest.raises(ValueError, match="no remote document id"):
            poller.start(job.id)

    def test_start_on_sealed_store_should_be_refused(self, scripted_service, store: JobStore) -> None:
        """Test nothing is polled once the store is sealed."""
        job_id = _submitted_job(store)
        registry = PollRegistry()
        poller = _make_poller(scripted_service, store, registry)
        store.seal()

        assert poller.start(job_id) is False
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_cancel_during_inflight_query_should_freeze_job(
        self, scripted_service, store: JobStore
    ) -> None:
        """Test a status call resolving after cancellation changes nothing."""
        # Arrange
        gate = asyncio.Event()
        scripted_service.status_gate = gate
        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.PROCESSED)]
        scripted_service.analyses["remote-1"] = DocumentAnalysis(total_chunks=2)
        job_id = _submitted_job(store)
        registry = PollRegistry()
        poller = _make_poller(scripted_service, store, registry)
        poller.start(job_id)
        await _wait_for_calls(scripted_service)

        # Act
        registry.stop_all()
        store.seal()
        snapshot = store.jobs[job_id]
        gate.set()
        await asyncio.sleep(0.02)

        # Assert
        assert store.jobs[job_id] is snapshot
        assert snapshot.status == UploadStatus.POLLING
        assert snapshot.status_text == "Tracking cancelled"
        assert not store.has_analysis(job_id)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_tick_should_skip_while_previous_tick_in_flight(
        self, scripted_service, store: JobStore
    ) -> None:
        """Test two overlapping ticks for one job issue one query."""
        gate = asyncio.Event()
        scripted_service.status_gate = gate
        scripted_service.status_scripts["remote-1"] = [_status(RemoteState.PROCESSING)]
        job_id = _submitted_job(store)
        registry = PollRegistry()
        poller = _make_poller(scripted_service, store, registry, interval_seconds=60)
        poller.start(job_id)

        first = asyncio.create_task(poller.tick(job_id))
        await _wait_for_calls(scripted_service)
        second = await poller.tick(job_id)
        gate.set()
        first_outcome = await first

        assert second is TickOutcome.SKIPPED
        assert first_outcome is TickOutcome.CONTINUE
        assert scripted_service.status_calls == ["remote-1"]
        assert store.jobs[job_id].progress == 60

        registry.stop_all()

    @pytest.mark.asyncio
    async def test_tick_without_handle_should_report_stopped(self, scripted_service, store: JobStore) -> None:
        """Test ticks for jobs that are not being polled do nothing."""
        job_id = _submitted_job(store)
        poller = _make_poller(scripted_service, store)

        assert await poller.tick(job_id) is TickOutcome.STOPPED
        assert scripted_service.status_calls == []
