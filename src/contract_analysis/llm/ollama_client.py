"""Ollama client for embeddings and text generation.

Every remote call runs on a worker thread and is abandoned once its time
bound expires, so a stalled model server can never hang a pipeline run.
Generation calls are never retried.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Dict, List, Optional

import httpx
import ollama

from ..config.models import OllamaSettings
from ..exceptions import EmbeddingUnavailable, GenerationError, GenerationTimeout
from ..interfaces.llm import IEmbeddingClient, IGenerationClient


logger = logging.getLogger(__name__)


class OllamaClient(IEmbeddingClient, IGenerationClient):
    """
    Wrapper for the Ollama API.

    One instance is created at startup and shared read-only by concurrent
    pipeline runs; call ``close()`` on shutdown.
    """

    def __init__(
        self,
        settings: Optional[OllamaSettings] = None,
        client: Optional[Any] = None,
        max_workers: int = 4,
    ):
        """
        Initialize the Ollama client.

        Args:
            settings: Host, model names and timeouts.
            client: Optional pre-built ``ollama.Client`` (used by tests).
            max_workers: Maximum number of concurrent remote calls.
        """
        self.settings = settings or OllamaSettings()
        transport_timeout = max(
            self.settings.embedding_timeout,
            self.settings.analysis_timeout,
            self.settings.report_timeout,
        )
        self._client = client or ollama.Client(
            host=self.settings.host, timeout=transport_timeout
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ollama"
        )
        logger.info(
            f"Initialized Ollama client with model {self.settings.model} "
            f"at {self.settings.host}"
        )

    @property
    def model(self) -> str:
        return self.settings.model

    @property
    def embedding_model(self) -> str:
        return self.settings.embedding_model

    def _call_with_timeout(self, func: Callable[..., Any], timeout: float, **kwargs) -> Any:
        future = self._executor.submit(func, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            future.cancel()
            raise

    def embed(self, text: str) -> List[float]:
        timeout = self.settings.embedding_timeout
        try:
            response = self._call_with_timeout(
                self._client.embeddings,
                timeout,
                model=self.embedding_model,
                prompt=text,
            )
        except FuturesTimeoutError as e:
            raise EmbeddingUnavailable(
                message=f"Embedding request timed out after {timeout:.0f}s",
                details={"model": self.embedding_model},
            ) from e
        except Exception as e:
            raise EmbeddingUnavailable(
                message=f"Embedding service error: {e}",
                details={"model": self.embedding_model},
            ) from e

        embedding = response["embedding"]
        if not embedding:
            raise EmbeddingUnavailable(
                message="Embedding service returned an empty vector",
                details={"model": self.embedding_model},
            )
        logger.debug(f"Generated embedding ({len(embedding)} dimensions)")
        return [float(x) for x in embedding]

    def generate(
        self,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> str:
        timeout = timeout or self.settings.analysis_timeout
        try:
            response = self._call_with_timeout(
                self._client.generate,
                timeout,
                model=self.model,
                prompt=prompt,
                options=options or {},
            )
        except (FuturesTimeoutError, httpx.TimeoutException) as e:
            raise GenerationTimeout(
                message="Generation request timed out",
                details={"model": self.model},
                timeout=timeout,
            ) from e
        except Exception as e:
            raise GenerationError(
                message=f"Generation request failed: {e}",
                details={"model": self.model},
            ) from e

        text = response["response"]
        if not text or not text.strip():
            raise GenerationError(
                message="Generation service returned an empty response",
                details={"model": self.model},
            )
        return text

    def health_check(self) -> bool:
        """Check whether the Ollama server answers within the embedding timeout."""
        try:
            self._call_with_timeout(self._client.list, self.settings.embedding_timeout)
            return True
        except Exception as e:
            logger.warning(f"Ollama health check failed: {e}")
            return False

    def close(self) -> None:
        """Stop accepting calls and drop queued ones."""
        self._executor.shutdown(wait=False, cancel_futures=True)
