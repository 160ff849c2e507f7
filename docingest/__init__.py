"""Asynchronous document-ingestion orchestrator."""

__version__ = "0.1.0"
