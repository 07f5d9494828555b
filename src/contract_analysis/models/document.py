"""Document-related data models for the Contract Analysis Agent."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .enums import DocumentStatus, RetrievalTier


@dataclass
class Document:
    """
    A stored contract document.

    Title, content and embedding are written once at creation time. The
    processing status lives inside ``metadata`` under the ``status`` key.
    """
    id: int
    title: str
    content: str
    embedding: List[float] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.embedding is None:
            self.embedding = []
        if self.metadata is None:
            self.metadata = {}

    @property
    def status(self) -> Optional[DocumentStatus]:
        """Current processing status, if one has been recorded."""
        value = self.metadata.get("status")
        if value is None:
            return None
        return DocumentStatus(value)


@dataclass
class SimilarClause:
    """A related document found by the retrieval engine."""
    id: int
    title: str
    content: str
    similarity_score: float
    created_at: Optional[datetime] = None
    tier: Optional[RetrievalTier] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "similarity_score": self.similarity_score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "tier": self.tier.value if self.tier else None,
        }
