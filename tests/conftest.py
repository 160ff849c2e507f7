"""
Shared test fixtures and configuration for entire test suite.

Provides: fast ingestion settings, in-memory source files, a scripted
ingestion service fake and a deterministic clock
Dependencies: pytest, docingest
System role: Test infrastructure and fixture management
"""

import asyncio
import tempfile
from pathlib import Path

import pytest

from docingest.boundary.ingestion.base import IngestionService
from docingest.boundary.ingestion.schemas import RemoteState, RemoteStatus, SubmitReceipt
from docingest.configs.ingestion import IngestionSettings
from docingest.core.encoding import EncodedDocument
from docingest.core.insights.models import DocumentAnalysis
from docingest.core.upload_jobs.models import SourceFile, UploadTarget


class ScriptedIngestionService(IngestionService):
    """
    In-memory IngestionService driven by per-file scripts.

    submit_results: file name -> remote id, None (processed synchronously) or an exception
    status_scripts: remote id -> list of RemoteStatus or exceptions; the last step repeats
    analyses: remote id -> DocumentAnalysis, None or an exception
    status_gate: when set, every status query waits on this event first
    """

    def __init__(self) -> None:
        self.submit_results: dict[str, object] = {}
        self.status_scripts: dict[str, list] = {}
        self.analyses: dict[str, object] = {}
        self.submitted: list[EncodedDocument] = []
        self.status_calls: list[str] = []
        self.analysis_calls: list[str] = []
        self.status_gate: asyncio.Event | None = None
        self.closed = False

    def script(self, file_name: str, remote_id: str | None, *statuses, analysis=None) -> None:
        self.submit_results[file_name] = remote_id
        if remote_id is not None:
            self.status_scripts[remote_id] = list(statuses) or [
                RemoteStatus(status=RemoteState.PROCESSED)
            ]
            self.analyses[remote_id] = analysis

    async def submit(self, document: EncodedDocument) -> SubmitReceipt:
        self.submitted.append(document)
        result = self.submit_results.get(document.file_name, f"remote-{document.file_name}")
        if isinstance(result, Exception):
            raise result
        return SubmitReceipt(remote_id=result)

    async def get_status(self, remote_id: str) -> RemoteStatus:
        self.status_calls.append(remote_id)
        if self.status_gate is not None:
            await self.status_gate.wait()
        script = self.status_scripts.get(remote_id) or [RemoteStatus(status=RemoteState.PROCESSED)]
        step = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(step, Exception):
            raise step
        return step

    async def get_analysis(self, remote_id: str) -> DocumentAnalysis | None:
        self.analysis_calls.append(remote_id)
        result = self.analyses.get(remote_id)
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


class StepClock:
    """Monotonic clock that advances by a fixed step on every read."""

    def __init__(self, step: float = 1.0, start: float = 0.0) -> None:
        self.step = step
        self.now = start

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def ingestion_settings() -> IngestionSettings:
    """
    Create settings with a fast poll cadence for tests.

    Returns:
        IngestionSettings: 10 ms interval, 5 s budget, default limits
    """
    return IngestionSettings(
        poll_interval_seconds=0.01,
        poll_budget_seconds=5.0,
    )


@pytest.fixture
def scripted_service() -> ScriptedIngestionService:
    """Create an empty scripted ingestion service."""
    return ScriptedIngestionService()


@pytest.fixture
def step_clock() -> StepClock:
    """Create a clock advancing one second per read."""
    return StepClock()


@pytest.fixture
def make_source():
    """
    Factory for in-memory source files.

    Returns:
        Callable[[str, int], SourceFile]: Builds a file of the given name and size
    """

    def _make(name: str = "report.pdf", size: int = 16) -> SourceFile:
        return SourceFile(name=name, data=b"x" * size)

    return _make


@pytest.fixture
def upload_target() -> UploadTarget:
    """Provide a target container for uploads."""
    return UploadTarget(container_id="nb-1", container_name="Q3 Reports")


@pytest.fixture
def temp_file():
    """
    Create a temporary file for testing disk-backed uploads.

    Yields:
        Path: Path to temporary file
    """
    with tempfile.NamedTemporaryFile(suffix=".txt", delete=False) as f:
        temp_path = Path(f.name)
        f.write(b"test content")

    yield temp_path

    if temp_path.exists():
        temp_path.unlink()
