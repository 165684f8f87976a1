"""
Embedders - Text to vector conversion via an external embedding service

Two backends share one batching policy:
- OpenAIEmbedder: OpenAI embeddings API (default, needs OPENAI_API_KEY)
- OllamaEmbedder: local Ollama instance (no credential)

Design:
- ``embed`` and ``embed_batch`` go through the same request path, so a text
  gets the same vector whether it is embedded alone or in a batch
- Batches are split into sub-batches of ``batch_size`` items, issued one
  after another with ``batch_delay`` seconds in between, or on a bounded
  thread pool when ``max_workers > 1``; output order always matches input
- A failing sub-batch aborts the whole call, nothing partial is returned
- No automatic retries; the SDK clients are created with retries disabled

Usage:
    from book_rag.vector_store.embedder import OpenAIEmbedder

    embedder = OpenAIEmbedder(model="text-embedding-3-small")
    vector = embedder.embed("A sample text")
    vectors = embedder.embed_batch(["Text 1", "Text 2"])
"""

import logging
import os
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import ollama
from openai import APIConnectionError, APIStatusError, OpenAI, OpenAIError

from ..config import RAGConfig
from ..exceptions import (
    EmbeddingUnavailableError,
    InvalidConfigurationError,
    MissingCredentialError,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_DELAY = 0.1


class Embedder(ABC):
    """
    Base class holding the batching and pacing policy.

    Subclasses implement ``_request`` (one API call for a list of texts)
    and ``health_check``.
    """

    def __init__(
        self,
        model: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        max_workers: int = 1,
    ):
        if batch_size < 1:
            raise InvalidConfigurationError(
                f"batch_size ({batch_size}) must be at least 1"
            )
        if max_workers < 1:
            raise InvalidConfigurationError(
                f"max_workers ({max_workers}) must be at least 1"
            )
        self.model = model
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_workers = max_workers
        self._dimensions: Optional[int] = None

    @property
    def dimensions(self) -> Optional[int]:
        """Return the embedding dimensions (available after first embed call)."""
        return self._dimensions

    @abstractmethod
    def _request(self, texts: list[str]) -> list[list[float]]:
        """Embed one sub-batch with a single API call."""

    @abstractmethod
    def health_check(self) -> dict[str, bool | str]:
        """Check whether the backend is reachable."""

    def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Raises:
            ValueError: If the text is empty.
            EmbeddingUnavailableError: If the backend call fails.
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        return self._request_checked([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts, one vector per input.

        Raises:
            ValueError: If any text is empty.
            EmbeddingUnavailableError: If any sub-batch fails.
        """
        if not texts:
            return []

        for i, text in enumerate(texts):
            if not text or not text.strip():
                raise ValueError(f"Cannot embed empty text (position {i})")

        batches = [
            texts[i:i + self.batch_size]
            for i in range(0, len(texts), self.batch_size)
        ]
        logger.debug(
            "Embedding %d texts in %d sub-batches (model=%s, workers=%d)",
            len(texts), len(batches), self.model, self.max_workers,
        )

        if self.max_workers > 1 and len(batches) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(self._request_checked, batches))
        else:
            results = []
            for n, batch in enumerate(batches):
                results.append(self._request_checked(batch))
                if n < len(batches) - 1 and self.batch_delay > 0:
                    time.sleep(self.batch_delay)

        embeddings = [vector for batch_vectors in results for vector in batch_vectors]
        self._check_dimensions(embeddings)
        return embeddings

    def _request_checked(self, texts: list[str]) -> list[list[float]]:
        vectors = self._request(texts)
        if len(vectors) != len(texts):
            raise EmbeddingUnavailableError(
                f"Embedding backend returned {len(vectors)} vectors "
                f"for {len(texts)} inputs"
            )
        self._check_dimensions(vectors)
        return vectors

    def _check_dimensions(self, vectors: list[list[float]]) -> None:
        lengths = {len(v) for v in vectors}
        if self._dimensions is not None:
            lengths.add(self._dimensions)
        if len(lengths) > 1 or 0 in lengths:
            raise EmbeddingUnavailableError(
                f"Embedding backend returned inconsistent dimensions: {sorted(lengths)}"
            )
        if vectors:
            self._dimensions = len(vectors[0])


class OpenAIEmbedder(Embedder):
    """
    Generates text embeddings with the OpenAI embeddings API.

    The credential is resolved when the embedder is constructed, so a
    missing key fails before any document is processed.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        max_workers: int = 1,
    ):
        """
        Initialize the embedder.

        Args:
            model: OpenAI embedding model name.
            api_key: API key (defaults to OPENAI_API_KEY env var).
            timeout: Per-request timeout in seconds.
            batch_size: Texts per API call.
            batch_delay: Pause between sequential API calls in seconds.
            max_workers: Concurrent API calls (1 = sequential).

        Raises:
            MissingCredentialError: If no API key is available.
        """
        super().__init__(model, batch_size, batch_delay, max_workers)
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise MissingCredentialError("OPENAI_API_KEY")
        self._client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _request(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self._client.embeddings.create(model=self.model, input=texts)
        except APIStatusError as e:
            raise EmbeddingUnavailableError(
                f"OpenAI embedding failed for model '{self.model}'",
                original_error=e,
                status_code=e.status_code,
            ) from e
        except APIConnectionError as e:
            raise EmbeddingUnavailableError(
                "Cannot connect to OpenAI API",
                original_error=e,
            ) from e
        except OpenAIError as e:
            raise EmbeddingUnavailableError(
                f"OpenAI embedding failed: {e}",
                original_error=e,
            ) from e

        # The API tags each item with its input position.
        items = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in items]

    def health_check(self) -> dict[str, bool | str]:
        """
        Check that the API is reachable and the model exists.

        Returns:
            Dict with 'healthy' (bool), 'model' and 'error' (str, if any).
        """
        result = {
            "healthy": False,
            "provider": "openai",
            "model": self.model,
            "error": "",
        }
        try:
            self._client.models.retrieve(self.model)
            result["healthy"] = True
        except OpenAIError as e:
            result["error"] = f"Cannot reach OpenAI model '{self.model}': {e}"
        return result


class OllamaEmbedder(Embedder):
    """
    Generates text embeddings using a local Ollama model.
    """

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = 0.0,
        max_workers: int = 1,
    ):
        """
        Initialize the embedder.

        Args:
            model: Ollama model name for embeddings.
            base_url: Ollama API base URL.
            timeout: Per-request timeout in seconds.
            batch_size: Texts per API call.
            batch_delay: Pause between sequential API calls in seconds.
            max_workers: Concurrent API calls (1 = sequential).
        """
        super().__init__(model, batch_size, batch_delay, max_workers)
        self.base_url = base_url
        self._client = ollama.Client(host=base_url, timeout=timeout)

    def _request(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self._client.embed(model=self.model, input=texts)
            return [list(v) for v in response["embeddings"]]
        except ollama.ResponseError as e:
            raise EmbeddingUnavailableError(
                f"Ollama embedding failed for model '{self.model}'",
                original_error=e,
                status_code=e.status_code,
            ) from e
        except Exception as e:
            if "Connection" in type(e).__name__ or "refused" in str(e).lower():
                raise EmbeddingUnavailableError(
                    f"Cannot connect to Ollama at {self.base_url}. "
                    f"Is Ollama running? Start it with: ollama serve",
                    original_error=e,
                ) from e
            raise EmbeddingUnavailableError(
                f"Embedding generation failed: {e}",
                original_error=e,
            ) from e

    def health_check(self) -> dict[str, bool | str]:
        """
        Check if Ollama is running and the embedding model is available.

        Returns:
            Dict with 'healthy' (bool), 'ollama_running' (bool),
            'model_available' (bool), and 'error' (str, if any).
        """
        result = {
            "healthy": False,
            "provider": "ollama",
            "ollama_running": False,
            "model_available": False,
            "model": self.model,
            "error": "",
        }

        try:
            models = self._client.list()
            result["ollama_running"] = True

            model_names = [m.model for m in models.models]
            # "nomic-embed-text" matches "nomic-embed-text:latest"
            result["model_available"] = any(
                m.startswith(self.model) for m in model_names
            )

            if not result["model_available"]:
                result["error"] = (
                    f"Model '{self.model}' not found. "
                    f"Available: {model_names}. "
                    f"Pull it with: ollama pull {self.model}"
                )
            else:
                result["healthy"] = True

        except Exception as e:
            result["error"] = f"Cannot connect to Ollama: {e}"

        return result


def create_embedder(config: RAGConfig) -> Embedder:
    """
    Build the embedder selected by ``config.embedding_provider``.

    Raises:
        InvalidConfigurationError: For an unknown provider.
        MissingCredentialError: For OpenAI without an API key.
    """
    provider = config.embedding_provider.lower()
    if provider == "openai":
        return OpenAIEmbedder(
            model=config.embedding_model,
            api_key=config.openai_api_key,
            timeout=config.embedding_timeout,
            batch_size=config.embedding_batch_size,
            batch_delay=config.embedding_batch_delay,
            max_workers=config.embedding_max_workers,
        )
    if provider == "ollama":
        return OllamaEmbedder(
            model=config.embedding_model,
            base_url=config.ollama_base_url,
            timeout=config.embedding_timeout,
            batch_size=config.embedding_batch_size,
            batch_delay=config.embedding_batch_delay,
            max_workers=config.embedding_max_workers,
        )
    raise InvalidConfigurationError(
        f"Unknown embedding provider '{config.embedding_provider}'",
        details="Expected 'openai' or 'ollama'",
    )
