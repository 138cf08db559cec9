import logging
import os
from typing import Any, Optional

import requests
from openai import OpenAI, OpenAIError

from adapters.base import BaseEmbedder
from adapters.utils import create_session_with_pooling
from errors import ConfigurationError, EmbeddingError

logger = logging.getLogger(__name__)

EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# OpenAI rejects requests with more inputs than this
OPENAI_MAX_BATCH = 2048
DEFAULT_BATCH_SIZE = 500
DEFAULT_OLLAMA_DIMENSION = 768


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embedding provider."""

    def __init__(self, model: str = "text-embedding-3-small", **kwargs: Any):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None) or None
        timeout = kwargs.pop("timeout", None)
        super().__init__(model, **kwargs)

        client_kwargs: dict[str, Any] = {"api_key": api_key, "base_url": base_url}
        if timeout:
            client_kwargs["timeout"] = timeout

        try:
            self.client = OpenAI(**client_kwargs)
        except OpenAIError as e:
            raise ConfigurationError(f"Cannot create OpenAI client: {e}") from e
        self._dimension: Optional[int] = kwargs.get("dimensions")

    @property
    def dimension(self) -> int:
        return self._dimension or EMBEDDING_DIMENSIONS.get(self.model, 1536)

    def _create_embedding_params(self, input_data: str | list[str]) -> dict[str, Any]:
        """Build parameters for embedding API call."""
        params = {"model": self.model, "input": input_data}
        if self._dimension is not None:
            params["dimensions"] = self._dimension
        return params

    def embed(self, text: str) -> list[float]:
        try:
            response = self.client.embeddings.create(**self._create_embedding_params(text))
        except OpenAIError as e:
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e
        return response.data[0].embedding

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        results: list[list[float]] = []
        for i in range(0, len(texts), OPENAI_MAX_BATCH):
            batch = texts[i : i + OPENAI_MAX_BATCH]
            try:
                response = self.client.embeddings.create(
                    **self._create_embedding_params(batch)
                )
            except OpenAIError as e:
                raise EmbeddingError(
                    f"OpenAI embedding request failed: {e}",
                    details={"embedded": len(results), "requested": len(texts)},
                ) from e
            results.extend(item.embedding for item in response.data)

        if len(results) != len(texts):
            raise EmbeddingError(
                f"OpenAI returned {len(results)} embeddings for {len(texts)} texts"
            )
        return results


class OllamaEmbedder(BaseEmbedder):
    """Ollama local embedding provider with batch requests and connection pooling."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._dimension = kwargs.get("dimension", DEFAULT_OLLAMA_DIMENSION)
        self._batch_size = batch_size
        self.session = create_session_with_pooling()

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        try:
            response = self.session.post(
                f"{self.base_url}/api/embeddings",
                json={"model": self.model, "prompt": text},
                timeout=30,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise EmbeddingError(f"Ollama embedding request failed: {e}") from e
        return response.json()["embedding"]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Batch embedding using /api/embed endpoint with chunking for large batches."""
        if not texts:
            return []

        results = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            results.extend(self._embed_batch_single(batch))

        return results

    def _embed_batch_single(self, texts: list[str]) -> list[list[float]]:
        """Send a single batch request to Ollama's /api/embed endpoint."""
        try:
            response = self.session.post(
                f"{self.base_url}/api/embed",
                json={"model": self.model, "input": texts},
                timeout=120,
            )
            response.raise_for_status()
            embeddings = response.json().get("embeddings", [])
        except requests.exceptions.RequestException as e:
            raise EmbeddingError(
                f"Ollama batch embedding failed: {e}",
                details={"requested": len(texts)},
            ) from e

        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} texts"
            )
        return embeddings
