"""
Batch insights.

Exports: DocumentAnalysis, BatchSummary, FileInsight, aggregate_insights
"""

from .aggregator import aggregate_insights
from .models import BatchSummary, DocumentAnalysis, FileInsight

__all__ = ["BatchSummary", "DocumentAnalysis", "FileInsight", "aggregate_insights"]
