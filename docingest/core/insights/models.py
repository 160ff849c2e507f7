"""
Insight models.

DocumentAnalysis is what the ingestion service reports for one processed
document; BatchSummary is the aggregate view derived from all of them.

Dependencies: pydantic
System role: Inputs and output of the insight aggregator
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentAnalysis(BaseModel):
    """Per-document metrics produced by the remote pipeline."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total_chunks: int = Field(default=0, ge=0, description="Content chunks produced")
    avg_confidence: float | None = Field(
        default=None,
        description="Mean extraction confidence (0-1); None when not reported",
    )
    main_topics: list[str] = Field(default_factory=list)
    key_entities: list[str] = Field(default_factory=list)
    dominant_sentiment: str | None = None
    processing_time_ms: float | None = None

    @field_validator("main_topics", "key_entities", mode="before")
    @classmethod
    def _null_list(cls, value):
        return value or []

    @field_validator("total_chunks", mode="before")
    @classmethod
    def _null_count(cls, value):
        return value or 0


class FileInsight(BaseModel):
    """One row of the per-file breakdown in a summary."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    file_name: str
    size_bytes: int
    status: str
    total_chunks: int | None = None
    avg_confidence: float | None = None
    analysis_pending: bool = False
    error: str | None = None


class BatchSummary(BaseModel):
    """Aggregate view over every job of a batch. Never stored, always recomputed."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_chunks: int = 0
    confidence_score: float = 0.0
    analyzed_files: int = 0
    processed_count: int = 0
    failed_count: int = 0
    timed_out_count: int = 0
    in_progress_count: int = 0
    avg_processing_time_ms: float = 0.0
    key_topics: list[str] = Field(default_factory=list)
    key_entities: list[str] = Field(default_factory=list)
    files: list[FileInsight] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
