"""
Observability module.

Provides logging configuration, structured logging helpers and the
observer hook the poller and orchestrator emit job events through.
"""

from docingest.observability.observer import IngestionObserver, LoggingObserver

__all__ = ["IngestionObserver", "LoggingObserver"]
