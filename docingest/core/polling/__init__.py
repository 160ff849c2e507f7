"""
Polling of submitted jobs.

Exports: PollRegistry, PollHandle, StatusPoller, TickOutcome
"""

from .poll_registry import PollHandle, PollRegistry
from .status_poller import StatusPoller, TickOutcome

__all__ = [
    "PollHandle",
    "PollRegistry",
    "StatusPoller",
    "TickOutcome",
]
