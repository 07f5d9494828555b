"""Language model client interfaces for the Contract Analysis Agent."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class IEmbeddingClient(ABC):
    """Abstract interface for embedding generation."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Compute the embedding of a text.

        Raises:
            EmbeddingUnavailable: If the embedding service errors or times out.
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Return True if the embedding service answers."""
        pass


class IGenerationClient(ABC):
    """Abstract interface for text generation."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate text for a prompt within ``timeout`` seconds.

        Raises:
            GenerationTimeout: If the call exceeds its time bound.
            GenerationError: If the service fails or returns no text.
        """
        pass
