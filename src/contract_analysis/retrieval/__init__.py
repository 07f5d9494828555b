"""Related-document retrieval for the Contract Analysis Agent."""

from .keywords import STOP_WORDS, extract_keywords, tokenize
from .retrieval_engine import RetrievalEngine, clamp_limit, clamp_score
from .strategies import (
    KeywordRankingStrategy,
    SemanticRankingStrategy,
    SubstringRankingStrategy,
    cosine_similarity,
)

__all__ = [
    "STOP_WORDS",
    "extract_keywords",
    "tokenize",
    "RetrievalEngine",
    "clamp_limit",
    "clamp_score",
    "KeywordRankingStrategy",
    "SemanticRankingStrategy",
    "SubstringRankingStrategy",
    "cosine_similarity",
]
