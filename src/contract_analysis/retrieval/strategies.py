"""Ranking strategies for the retrieval fallback chain."""

import heapq
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ..exceptions import EmbeddingUnavailable, RetrievalDegraded
from ..interfaces.llm import IEmbeddingClient
from ..interfaces.retrieval import IRankingStrategy
from ..interfaces.storage import IDocumentStore
from ..models.document import SimilarClause
from ..models.enums import RetrievalTier
from .keywords import extract_keywords


logger = logging.getLogger(__name__)


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Returns:
        Similarity clamped to 0.0 to 1.0; mismatched or zero vectors score 0.0.
    """
    if len(vec1) != len(vec2):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    norm1 = sum(a * a for a in vec1) ** 0.5
    norm2 = sum(b * b for b in vec2) ** 0.5

    if norm1 == 0 or norm2 == 0:
        return 0.0

    return max(0.0, min(1.0, dot_product / (norm1 * norm2)))


class SemanticRankingStrategy(IRankingStrategy):
    """
    Nearest-neighbour ranking over stored document embeddings.

    Unavailable when no embedding client is configured, the query cannot be
    embedded, or no stored document has a comparable embedding.
    """

    tier = RetrievalTier.SEMANTIC

    def __init__(
        self,
        store: IDocumentStore,
        embedding_client: Optional[IEmbeddingClient],
    ):
        self._store = store
        self._embedding_client = embedding_client

    @property
    def is_available(self) -> bool:
        return self._embedding_client is not None

    def rank(
        self,
        query_text: str,
        limit: int,
        min_score: float,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        if not self.is_available:
            raise RetrievalDegraded("Semantic ranking disabled: no embedding client")

        try:
            query_embedding = self._embedding_client.embed(query_text)
        except EmbeddingUnavailable as e:
            raise RetrievalDegraded(
                message=f"Query embedding failed: {e.message}"
            ) from e

        # Min-heap of (score, id); higher ids were stored later, so ties go
        # to the newest document.
        top: List[Tuple[float, int]] = []
        compared = 0
        for doc_id, embedding in self._store.iter_embeddings(exclude_ids):
            if len(embedding) != len(query_embedding):
                continue
            compared += 1
            similarity = cosine_similarity(query_embedding, embedding)
            if similarity < min_score:
                continue
            entry = (similarity, doc_id)
            if len(top) < limit:
                heapq.heappush(top, entry)
            elif entry > top[0]:
                heapq.heapreplace(top, entry)

        if not compared:
            raise RetrievalDegraded(
                message="Semantic index has no comparable embeddings",
                details={"dimensions": len(query_embedding)},
            )

        ranked = sorted(top, reverse=True)
        documents = {
            doc.id: doc for doc in self._store.get_documents([doc_id for _, doc_id in ranked])
        }
        logger.debug(
            f"Semantic ranking scored {compared} candidates, kept {len(ranked)} above {min_score}"
        )
        return [
            SimilarClause(
                id=doc_id,
                title=documents[doc_id].title,
                content=documents[doc_id].content,
                similarity_score=similarity,
                created_at=documents[doc_id].created_at,
                tier=self.tier,
            )
            for similarity, doc_id in ranked
            if doc_id in documents
        ]


class KeywordRankingStrategy(IRankingStrategy):
    """
    Heuristic ranking by keyword containment.

    Scores are fixed confidences: primary keyword in title 0.9, in content
    0.8, secondary keyword in content 0.7.
    """

    tier = RetrievalTier.KEYWORD

    def __init__(self, store: IDocumentStore):
        self._store = store

    def rank(
        self,
        query_text: str,
        limit: int,
        min_score: float,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        keywords = extract_keywords(query_text)
        logger.debug(f"Extracted keywords: {', '.join(keywords)}")

        primary = keywords[0] if keywords else query_text[:20].strip()
        if len(keywords) > 1:
            secondary = keywords[1]
        else:
            secondary = query_text[20:40].strip() or None
        if not primary:
            raise RetrievalDegraded("Query has no searchable terms")

        return self._store.search_keywords(primary, secondary, limit, exclude_ids)


class SubstringRankingStrategy(IRankingStrategy):
    """Case-insensitive substring match on a bounded query prefix, newest first."""

    tier = RetrievalTier.SUBSTRING

    def __init__(self, store: IDocumentStore, prefix_chars: int = 50):
        self._store = store
        self._prefix_chars = prefix_chars

    def rank(
        self,
        query_text: str,
        limit: int,
        min_score: float,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        pattern = query_text[:self._prefix_chars].strip()
        if not pattern:
            raise RetrievalDegraded("Query is empty")
        return self._store.search_substring(pattern, limit, exclude_ids)
