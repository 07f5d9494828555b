"""Persistence interface for the Contract Analysis Agent."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.analysis import Analysis, HistoryEntry
from ..models.document import Document, SimilarClause
from ..models.enums import DocumentStatus


class IDocumentStore(ABC):
    """
    Abstract interface for document and analysis storage.

    Every operation is atomic at the single-row level. Implementations
    raise PersistenceError when the backing store is unavailable.
    """

    @abstractmethod
    def create_document(
        self,
        title: str,
        content: str,
        embedding: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Store a new document.

        Returns:
            The identifier assigned to the document.
        """
        pass

    @abstractmethod
    def update_status(self, document_id: int, status: DocumentStatus) -> None:
        """Set the ``status`` key of a document's metadata."""
        pass

    @abstractmethod
    def save_analysis(self, document_id: int, analysis: Analysis, report: str) -> int:
        """
        Store an analysis and its report against a document.

        Returns:
            The identifier of the analysis record.
        """
        pass

    @abstractmethod
    def list_recent(self, limit: int) -> List[HistoryEntry]:
        """Return history rows, most recent first."""
        pass

    @abstractmethod
    def get_document(self, document_id: int) -> Optional[Document]:
        """Fetch a single document, or None if it does not exist."""
        pass

    @abstractmethod
    def iter_embeddings(
        self, exclude_ids: Iterable[int] = ()
    ) -> Iterable[Tuple[int, List[float]]]:
        """Yield ``(id, embedding)`` for stored documents that carry an embedding."""
        pass

    @abstractmethod
    def get_documents(self, document_ids: Sequence[int]) -> List[Document]:
        """Fetch several documents, in the order of ``document_ids``."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Return True if the backing store answers."""
        pass

    @abstractmethod
    def search_keywords(
        self,
        primary: str,
        secondary: Optional[str],
        limit: int,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        """Rank documents by the keyword heuristic."""
        pass

    @abstractmethod
    def search_substring(
        self, pattern: str, limit: int, exclude_ids: Iterable[int] = ()
    ) -> List[SimilarClause]:
        """Find documents whose title or content contains ``pattern``."""
        pass
