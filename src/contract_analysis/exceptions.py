"""Error taxonomy for the Contract Analysis Agent.

Only ``ValidationError``, ``PersistenceError`` and ``EmbeddingUnavailable``
(before a document exists) abort a pipeline run. The remaining errors are
raised by collaborators and converted into fallback values by their callers.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ContractAnalysisError(Exception):
    """
    Base exception for the Contract Analysis Agent.

    Attributes:
        message: Human-readable error description.
        details: Additional error details for logging.
    """
    message: str
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


@dataclass
class ValidationError(ContractAnalysisError):
    """Raised for bad input, before any side effect takes place."""
    field_name: Optional[str] = None

    def __str__(self) -> str:
        if self.field_name:
            return f"{self.message} (field: {self.field_name})"
        return self.message


@dataclass
class UnsupportedFormatError(ValidationError):
    """Raised when an uploaded file type cannot be converted to text."""


@dataclass
class DocumentCorruptedError(ValidationError):
    """Raised when an uploaded file exists but cannot be read."""


@dataclass
class EmbeddingUnavailable(ContractAnalysisError):
    """Raised when the embedding service errors or times out."""


@dataclass
class RetrievalDegraded(ContractAnalysisError):
    """Raised when a retrieval tier, or the whole chain, cannot produce results."""


@dataclass
class GenerationError(ContractAnalysisError):
    """Raised when the generative service fails or returns unusable output."""


@dataclass
class GenerationTimeout(GenerationError):
    """Raised when a generation call exceeds its time bound."""
    timeout: Optional[float] = None

    def __str__(self) -> str:
        if self.timeout is not None:
            return f"{self.message} (after {self.timeout:.0f}s)"
        return self.message


@dataclass
class PersistenceError(ContractAnalysisError):
    """Raised when the document store cannot complete an operation."""
    operation: Optional[str] = None

    def __str__(self) -> str:
        if self.operation:
            return f"{self.message} | Operation: {self.operation}"
        return self.message


@dataclass
class NotificationError(ContractAnalysisError):
    """Raised when a notification cannot be delivered."""
