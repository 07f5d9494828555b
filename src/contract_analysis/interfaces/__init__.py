"""Abstract interfaces for the Contract Analysis Agent."""

from .llm import IEmbeddingClient, IGenerationClient
from .notification import INotifier
from .retrieval import IRankingStrategy
from .storage import IDocumentStore

__all__ = [
    "IEmbeddingClient",
    "IGenerationClient",
    "INotifier",
    "IRankingStrategy",
    "IDocumentStore",
]
