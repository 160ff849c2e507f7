"""API-specific dependencies."""

from .dependencies import BatchSessionManager, get_session_manager

__all__ = [
    "BatchSessionManager",
    "get_session_manager",
]
