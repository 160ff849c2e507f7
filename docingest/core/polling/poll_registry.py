"""
Poll registry.

Sole owner of polling handles. Each handle binds a job id to the asyncio
task running its polling loop and the monotonic time the loop started.
No other component creates or cancels polling tasks.

Guarantees:
- at most one active handle per job id (``start`` is idempotent);
- ``stop`` and ``stop_all`` are synchronous and clear the task and its
  bookkeeping together, so a later ``start`` begins from a clean slate.

Dependencies: asyncio (stdlib)
System role: Arena of per-job polling tasks
"""

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

LoopFactory = Callable[["PollHandle"], Coroutine[Any, Any, None]]


@dataclass(eq=False)
class PollHandle:
    """A running polling loop for one job."""

    job_id: str
    started_at: float
    task: asyncio.Task | None = field(default=None, repr=False)
    stopped: bool = False

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()


class PollRegistry:
    """Owns every active PollHandle, keyed by job id."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._handles: dict[str, PollHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._handles

    @property
    def active_job_ids(self) -> list[str]:
        return list(self._handles)

    def get(self, job_id: str) -> PollHandle | None:
        return self._handles.get(job_id)

    def is_active(self, job_id: str) -> bool:
        return job_id in self._handles

    def start(self, job_id: str, loop_factory: LoopFactory) -> PollHandle | None:
        """
        Start a polling loop for a job unless one is already active.

        Must be called from a running event loop.

        Args:
            job_id: Job to poll
            loop_factory: Coroutine function receiving the new handle

        Returns:
            PollHandle | None: The new handle, or None if one was already active
        """
        if job_id in self._handles:
            logger.debug("Polling already active for job %s", job_id)
            return None

        handle = PollHandle(job_id=job_id, started_at=self.clock())
        handle.task = asyncio.get_running_loop().create_task(
            loop_factory(handle),
            name=f"poll:{job_id}",
        )
        self._handles[job_id] = handle
        return handle

    def stop(self, job_id: str) -> bool:
        """
        Stop one job's polling loop.

        Safe to call from inside the loop being stopped: the current task is
        never cancelled, only flagged and forgotten.

        Returns:
            bool: True if a handle was active
        """
        handle = self._handles.pop(job_id, None)
        if handle is None:
            return False
        handle.stopped = True
        task = handle.task
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()
        return True

    def stop_all(self) -> int:
        """Stop every active loop. Returns the number of handles stopped."""
        stopped = 0
        for job_id in list(self._handles):
            if self.stop(job_id):
                stopped += 1
        if stopped:
            logger.info("Stopped %d polling loop(s)", stopped)
        return stopped

    def release(self, handle: PollHandle) -> None:
        """Forget a handle whose loop finished on its own."""
        if self._handles.get(handle.job_id) is handle:
            del self._handles[handle.job_id]

    async def join(self) -> None:
        """Wait until no polling loop is active, including loops started meanwhile."""
        while self._handles:
            tasks = [h.task for h in self._handles.values() if h.task is not None]
            if not tasks:
                return
            await asyncio.wait(tasks)
            for handle in list(self._handles.values()):
                if handle.done:
                    self.release(handle)
