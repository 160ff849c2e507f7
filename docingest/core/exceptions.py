"""
Exception hierarchy for the ingestion orchestrator.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging, and a
stable ``code`` that is copied onto a job when the error becomes part of
its final state.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class IngestionException(Exception):
    """Base exception for all ingestion errors."""

    code = "ingestion_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(IngestionException):
    """Raised when a file or a batch is rejected before submission."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class IngestionServiceError(IngestionException):
    """Raised when a call to the remote ingestion service fails."""

    code = "ingestion_service_error"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize ingestion service error.

        Args:
            message: Error message
            operation: Operation that failed (submit, get_status, get_analysis)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class SubmitError(IngestionServiceError):
    """Raised when the initial submission of a document fails."""

    code = "submit_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, operation="submit", details=details)


class TransientPollError(IngestionServiceError):
    """Raised when a single status query fails. Never reaches the caller."""

    code = "transient_poll_error"

    def __init__(
        self,
        message: str,
        remote_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if remote_id:
            details["remote_id"] = remote_id
        super().__init__(message, operation="get_status", details=details)


class ProcessingFailure(IngestionException):
    """The remote service reported that processing failed."""

    code = "processing_failure"

    def __init__(
        self,
        message: str = "Remote processing failed",
        remote_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if remote_id:
            details["remote_id"] = remote_id
        super().__init__(message, details)


class PollTimeoutError(IngestionException):
    """
    The local wall-clock budget ran out before a terminal remote status.

    Distinct from ProcessingFailure: the remote side may still be working.
    """

    code = "poll_timeout"

    def __init__(self, elapsed_seconds: float, budget_seconds: float) -> None:
        super().__init__(
            f"No terminal status after {elapsed_seconds:.1f}s "
            f"(budget {budget_seconds:.1f}s)",
            {"elapsed_seconds": round(elapsed_seconds, 3), "budget_seconds": budget_seconds},
        )


class SessionClosedError(IngestionException):
    """Raised when a cancelled ingestion session is used again."""

    code = "session_closed"
