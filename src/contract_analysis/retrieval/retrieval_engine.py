"""Retrieval engine with a tiered fallback chain.

Tiers are tried in order and the first one that answers wins, even with an
empty result. A tier that raises hands over to the next one; only when every
tier has failed does the engine raise RetrievalDegraded.
"""

import logging
import math
from typing import Any, Iterable, List, Optional, Sequence

from ..config.models import RetrievalSettings
from ..exceptions import RetrievalDegraded
from ..interfaces.llm import IEmbeddingClient
from ..interfaces.retrieval import IRankingStrategy
from ..interfaces.storage import IDocumentStore
from ..models.document import SimilarClause
from .strategies import (
    KeywordRankingStrategy,
    SemanticRankingStrategy,
    SubstringRankingStrategy,
)


logger = logging.getLogger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 50
DEFAULT_LIMIT = 5
DEFAULT_MIN_SCORE = 0.8


def clamp_limit(
    value: Any,
    default: int = DEFAULT_LIMIT,
    lower: int = MIN_LIMIT,
    upper: int = MAX_LIMIT,
) -> int:
    """
    Coerce a limit into ``[lower, upper]``.

    Numeric strings and floats are accepted; anything unparsable falls back
    to ``default``. Never raises.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return max(lower, min(upper, value))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return max(lower, min(upper, default))
    if math.isnan(number):
        return max(lower, min(upper, default))
    if math.isinf(number):
        return upper if number > 0 else lower
    return max(lower, min(upper, int(number)))


def clamp_score(value: Any, default: float = DEFAULT_MIN_SCORE) -> float:
    """Coerce a relevance floor into ``[0.0, 1.0]``."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return max(0.0, min(1.0, number))


class RetrievalEngine:
    """
    Finds documents related to a query text.

    Holds an ordered list of ranking strategies; swapping or adding a
    strategy does not affect callers.
    """

    def __init__(self, strategies: Sequence[IRankingStrategy]):
        if not strategies:
            raise ValueError("RetrievalEngine needs at least one ranking strategy")
        self._strategies = list(strategies)

    @classmethod
    def from_store(
        cls,
        store: IDocumentStore,
        embedding_client: Optional[IEmbeddingClient] = None,
        settings: Optional[RetrievalSettings] = None,
    ) -> "RetrievalEngine":
        """Build the default semantic, keyword, substring chain."""
        settings = settings or RetrievalSettings()
        strategies: List[IRankingStrategy] = []
        if settings.enable_semantic_tier:
            strategies.append(SemanticRankingStrategy(store, embedding_client))
        strategies.append(KeywordRankingStrategy(store))
        strategies.append(
            SubstringRankingStrategy(store, prefix_chars=settings.substring_prefix_chars)
        )
        return cls(strategies)

    @property
    def strategies(self) -> List[IRankingStrategy]:
        return list(self._strategies)

    def find_related(
        self,
        query_text: str,
        limit: Any = DEFAULT_LIMIT,
        min_score: Any = DEFAULT_MIN_SCORE,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        """
        Find related documents, most relevant first.

        Args:
            query_text: Text to match against stored documents.
            limit: Maximum results; clamped to [1, 50].
            min_score: Relevance floor for the semantic tier; clamped to [0, 1].
            exclude_ids: Document ids never to return.

        Raises:
            RetrievalDegraded: If every tier failed.
        """
        limit = clamp_limit(limit)
        min_score = clamp_score(min_score)
        excluded = list(exclude_ids)
        failures = []

        for strategy in self._strategies:
            try:
                results = strategy.rank(query_text, limit, min_score, excluded)
            except Exception as e:
                logger.warning(
                    f"Retrieval tier '{strategy.tier.value}' failed, falling back: {e}"
                )
                failures.append({"tier": strategy.tier.value, "error": str(e)})
                continue

            logger.info(
                f"Retrieval tier '{strategy.tier.value}' returned {len(results)} results"
            )
            return results[:limit]

        raise RetrievalDegraded(
            message="All retrieval tiers failed",
            details={"failures": failures},
        )
