"""
Insight aggregator.

Recomputes a BatchSummary from the current job map and the analyses
recorded so far. Nothing is accumulated between calls, so a partial
summary taken mid-batch and the final one are computed by exactly the
same code over different inputs.

Jobs are visited in batch order (``UploadJob.sequence``), never in the
order results arrived, which keeps topic and entity sampling
deterministic.

Dependencies: docingest.core.upload_jobs, docingest.core.insights.models
System role: Pure batch summary derivation
"""

from collections.abc import Iterable, Mapping

from docingest.core.insights.models import BatchSummary, DocumentAnalysis, FileInsight
from docingest.core.upload_jobs.models import UploadJob, UploadStatus


NO_ANALYSIS_RECOMMENDATION = "Processing completed without analysis data"
HIGH_CONFIDENCE_RECOMMENDATIONS = ("Documents processed successfully", "ML analysis complete")
MODERATE_CONFIDENCE_RECOMMENDATIONS = (
    "Documents processed with moderate confidence",
    "Spot-check extracted content before relying on it",
)
LOW_CONFIDENCE_RECOMMENDATIONS = (
    "Extraction confidence is low",
    "Consider re-uploading higher quality source files",
)


def _dedupe(values: Iterable[str], limit: int) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
            if len(seen) >= limit:
                break
    return seen


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def build_recommendations(
    confidence_score: float,
    analyzed_files: int,
    unfinished_files: int,
    high_confidence: float = 0.8,
    moderate_confidence: float = 0.6,
) -> list[str]:
    """
    Pick recommendations from the aggregate confidence.

    Args:
        confidence_score: Mean confidence over analyzed files
        analyzed_files: Number of files that reported confidence
        unfinished_files: Files that failed or timed out after submission
        high_confidence: Lower bound of the "high" band
        moderate_confidence: Lower bound of the "moderate" band

    Returns:
        list[str]: Never empty
    """
    if analyzed_files == 0:
        recommendations = [NO_ANALYSIS_RECOMMENDATION]
    elif confidence_score >= high_confidence:
        recommendations = list(HIGH_CONFIDENCE_RECOMMENDATIONS)
    elif confidence_score >= moderate_confidence:
        recommendations = list(MODERATE_CONFIDENCE_RECOMMENDATIONS)
    else:
        recommendations = list(LOW_CONFIDENCE_RECOMMENDATIONS)

    if unfinished_files:
        noun = "file" if unfinished_files == 1 else "files"
        recommendations.append(
            f"{unfinished_files} {noun} did not finish processing; retry them in a new batch"
        )
    return recommendations


def _file_row(job: UploadJob, analysis: DocumentAnalysis | None) -> FileInsight:
    return FileInsight(
        job_id=job.id,
        file_name=job.name,
        size_bytes=job.size_bytes,
        status=job.status.value,
        total_chunks=analysis.total_chunks if analysis else None,
        avg_confidence=analysis.avg_confidence if analysis else None,
        analysis_pending=analysis is None and job.status == UploadStatus.PROCESSED,
        error=job.last_error,
    )


def aggregate_insights(
    jobs: Mapping[str, UploadJob],
    analyses: Mapping[str, DocumentAnalysis],
    *,
    topic_limit: int = 5,
    entity_limit: int = 10,
    high_confidence: float = 0.8,
    moderate_confidence: float = 0.6,
) -> BatchSummary:
    """
    Derive the batch summary.

    Args:
        jobs: Job map keyed by job id
        analyses: Recorded analyses keyed by job id
        topic_limit: Maximum number of topics in the summary
        entity_limit: Maximum number of entities in the summary
        high_confidence: Threshold for the "high confidence" recommendations
        moderate_confidence: Threshold for the "moderate confidence" recommendations

    Returns:
        BatchSummary: Zero-valued numbers when nothing was analyzed
    """
    ordered = sorted(jobs.values(), key=lambda job: (job.sequence, job.id))
    submitted = [job for job in ordered if job.was_submitted]

    confidences: list[float] = []
    processing_times: list[float] = []
    topics: list[str] = []
    entities: list[str] = []
    total_chunks = 0

    for job in submitted:
        analysis = analyses.get(job.id)
        if analysis is None:
            continue
        total_chunks += analysis.total_chunks
        if analysis.avg_confidence is not None:
            confidences.append(analysis.avg_confidence)
        if analysis.processing_time_ms is not None:
            processing_times.append(analysis.processing_time_ms)
        topics.extend(analysis.main_topics)
        entities.extend(analysis.key_entities)

    confidence_score = _mean(confidences)
    counts = {status: 0 for status in UploadStatus}
    for job in submitted:
        counts[job.status] += 1
    unfinished = counts[UploadStatus.FAILED] + counts[UploadStatus.TIMED_OUT]

    return BatchSummary(
        total_files=len(submitted),
        total_chunks=total_chunks,
        confidence_score=confidence_score,
        analyzed_files=len(confidences),
        processed_count=counts[UploadStatus.PROCESSED],
        failed_count=counts[UploadStatus.FAILED],
        timed_out_count=counts[UploadStatus.TIMED_OUT],
        in_progress_count=sum(1 for job in submitted if not job.is_terminal),
        avg_processing_time_ms=_mean(processing_times),
        key_topics=_dedupe(topics, topic_limit),
        key_entities=_dedupe(entities, entity_limit),
        files=[_file_row(job, analyses.get(job.id)) for job in ordered],
        recommendations=build_recommendations(
            confidence_score,
            len(confidences),
            unfinished,
            high_confidence=high_confidence,
            moderate_confidence=moderate_confidence,
        ),
    )
