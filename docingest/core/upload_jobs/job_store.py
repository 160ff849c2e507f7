"""
Keyed job map.

The single place where job state lives. Writers (orchestrator and poller)
never assign jobs directly: they apply a pure transition through
``JobStore.apply``. Once sealed, the store ignores every write, which is
what makes cancellation final even when a network call resolves late.

Dependencies: docingest.core.upload_jobs, docingest.observability
System role: Reducer state container for one ingestion session
"""

import logging
from collections.abc import Callable, Iterator
from types import MappingProxyType
from typing import Any, Mapping

from docingest.core.insights.models import DocumentAnalysis
from docingest.core.upload_jobs import transitions
from docingest.core.upload_jobs.models import UploadJob
from docingest.observability.observer import IngestionObserver

logger = logging.getLogger(__name__)

Transition = Callable[..., UploadJob]


class JobStore:
    """Job map plus the analyses recorded for processed jobs."""

    def __init__(self, observer: IngestionObserver | None = None) -> None:
        self._jobs: dict[str, UploadJob] = {}
        self._analyses: dict[str, DocumentAnalysis] = {}
        self._observer = observer or IngestionObserver()
        self._sealed = False

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[UploadJob]:
        return iter(list(self._jobs.values()))

    @property
    def jobs(self) -> Mapping[str, UploadJob]:
        """Read-only view of the job map."""
        return MappingProxyType(self._jobs)

    @property
    def analyses(self) -> Mapping[str, DocumentAnalysis]:
        """Read-only view of recorded analyses keyed by job id."""
        return MappingProxyType(self._analyses)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, job_id: str) -> UploadJob | None:
        return self._jobs.get(job_id)

    def add(self, job: UploadJob) -> UploadJob:
        if self._sealed:
            raise RuntimeError("Cannot add jobs to a sealed store")
        if job.id in self._jobs:
            raise ValueError(f"Job {job.id} already exists")
        self._jobs[job.id] = job
        self._observer.job_updated(job)
        return job

    def apply(self, job_id: str, transition: Transition, *args: Any, **kwargs: Any) -> UploadJob:
        """
        Apply a transition to one job and store the result.

        Args:
            job_id: Job to update
            transition: Pure function (job, *args, **kwargs) -> job
            *args: Event payload forwarded to the transition
            **kwargs: Event payload forwarded to the transition

        Returns:
            UploadJob: The stored job (unchanged if the store is sealed)

        Raises:
            KeyError: Unknown job id
        """
        current = self._jobs[job_id]
        if self._sealed:
            logger.debug(
                "Ignoring %s for job %s: store sealed",
                getattr(transition, "__name__", "transition"),
                job_id,
            )
            return current

        updated = transition(current, *args, **kwargs)
        if updated is current:
            return current
        self._jobs[job_id] = updated
        self._observer.job_updated(updated)
        return updated

    def has_analysis(self, job_id: str) -> bool:
        return job_id in self._analyses

    def record_analysis(self, job_id: str, analysis: DocumentAnalysis) -> bool:
        """
        Record the analysis of a processed job, at most once.

        Returns:
            bool: True if recorded, False if sealed or already present
        """
        if self._sealed or job_id in self._analyses:
            return False
        if job_id not in self._jobs:
            raise KeyError(job_id)
        self._analyses[job_id] = analysis
        return True

    def seal(self) -> None:
        """Mark open jobs as cancelled and reject every later write."""
        if self._sealed:
            return
        for job_id in list(self._jobs):
            self.apply(job_id, transitions.cancelled)
        self._sealed = True
