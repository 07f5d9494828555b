"""Ranking strategy interface for the retrieval engine."""

from abc import ABC, abstractmethod
from typing import Iterable, List

from ..models.document import SimilarClause
from ..models.enums import RetrievalTier


class IRankingStrategy(ABC):
    """
    Abstract interface for one tier of the retrieval fallback chain.

    A strategy raises RetrievalDegraded (or any other exception) when it
    cannot produce results, which hands control to the next tier.
    """

    tier: RetrievalTier

    @abstractmethod
    def rank(
        self,
        query_text: str,
        limit: int,
        min_score: float,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        """
        Rank stored documents against a query.

        Returns:
            At most ``limit`` clauses, most relevant first.
        """
        pass
