"""Enumerations for the Contract Analysis Agent."""

from enum import Enum


class DocumentStatus(Enum):
    """Processing status of a stored document."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RiskLevel(Enum):
    """Overall risk rating produced by contract analysis."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: str) -> "RiskLevel":
        """Parse a risk level case-insensitively.

        Raises:
            ValueError: If the value is not a known risk level.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for level in cls:
            if level.value.lower() == normalized:
                return level
        raise ValueError(f"Unknown risk level: {value!r}")


class RetrievalTier(Enum):
    """Ranking strategies used by the retrieval fallback chain."""
    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    SUBSTRING = "substring"
