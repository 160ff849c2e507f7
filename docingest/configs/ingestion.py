"""
Ingestion orchestration settings.

Limits for file validation, polling cadence and the wall-clock budget,
plus the thresholds used when summarising a batch.

Dependencies: pydantic, pydantic_settings
System role: Tuning knobs for the upload orchestrator and status poller
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docingest.configs.base import BaseSettings


class IngestionSettings(BaseSettings):
    """Batch upload, polling and summary configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGEST_",
        case_sensitive=False,
        extra="ignore",
    )

    # File validation
    max_file_size_bytes: int = Field(
        default=100 * 1024 * 1024,
        description="Largest accepted file in bytes (100 MB)",
    )
    max_files_per_batch: int = Field(
        default=50,
        description="Maximum number of files accepted in one batch",
    )

    # Polling
    poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between two status queries for the same job",
    )
    poll_budget_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Wall-clock budget before a polled job is forced to timed_out",
    )
    analysis_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound on the analysis fetch after a job is processed",
    )

    # Batch sessions
    batch_retention_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Idle time after which a settled or cancelled batch is evicted",
    )

    # Batch summary
    topic_display_limit: int = Field(default=5, description="Topics shown in a summary")
    entity_display_limit: int = Field(default=10, description="Entities shown in a summary")
    high_confidence_threshold: float = Field(
        default=0.8,
        description="Aggregate confidence considered high",
    )
    moderate_confidence_threshold: float = Field(
        default=0.6,
        description="Aggregate confidence considered acceptable",
    )
