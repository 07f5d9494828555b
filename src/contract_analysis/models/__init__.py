"""Data models for the Contract Analysis Agent."""

from .analysis import Analysis, HistoryEntry, PipelineStats, ProcessingResult
from .document import Document, SimilarClause
from .enums import DocumentStatus, RetrievalTier, RiskLevel

__all__ = [
    "Analysis",
    "HistoryEntry",
    "PipelineStats",
    "ProcessingResult",
    "Document",
    "SimilarClause",
    "DocumentStatus",
    "RetrievalTier",
    "RiskLevel",
]
