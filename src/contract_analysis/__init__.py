"""Contract Analysis Agent

Ingests contracts, retrieves related prior documents, and produces a
structured risk analysis and narrative report with a language model.
"""

__version__ = "1.0.0"

# Export main components
from .analysis import AnalysisService
from .config import AgentConfig, ConfigurationError, ConfigurationManager
from .exceptions import (
    ContractAnalysisError,
    EmbeddingUnavailable,
    GenerationError,
    GenerationTimeout,
    NotificationError,
    PersistenceError,
    RetrievalDegraded,
    ValidationError,
)
from .llm import OllamaClient
from .models import (
    Analysis,
    Document,
    DocumentStatus,
    HistoryEntry,
    ProcessingResult,
    RetrievalTier,
    RiskLevel,
    SimilarClause,
)
from .notifications import NotificationService
from .pipeline import ContractAnalysisPipeline
from .retrieval import RetrievalEngine, extract_keywords
from .storage import DatabaseManager, DocumentStore

__all__ = [
    "AnalysisService",
    "AgentConfig",
    "ConfigurationError",
    "ConfigurationManager",
    "ContractAnalysisError",
    "EmbeddingUnavailable",
    "GenerationError",
    "GenerationTimeout",
    "NotificationError",
    "PersistenceError",
    "RetrievalDegraded",
    "ValidationError",
    "OllamaClient",
    "Analysis",
    "Document",
    "DocumentStatus",
    "HistoryEntry",
    "ProcessingResult",
    "RetrievalTier",
    "RiskLevel",
    "SimilarClause",
    "NotificationService",
    "ContractAnalysisPipeline",
    "RetrievalEngine",
    "extract_keywords",
    "DatabaseManager",
    "DocumentStore",
]
