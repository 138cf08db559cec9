from abc import ABC, abstractmethod
from typing import Any

from models.chunk import Chunk, RetrievalResult


class BaseVectorStore(ABC):
    """Abstract base class for vector stores.

    A store manages one named collection with a fixed dimension and
    distance metric. Writes only ever add records.
    """

    def __init__(self, collection: str, dimension: int, **kwargs: Any):
        self.collection = collection
        self.dimension = dimension

    @abstractmethod
    def ensure_collection(self) -> None:
        """Create the collection if it does not exist yet.

        Raises:
            ConfigurationError: If an existing collection has another dimension.
            StoreError: If the store cannot be reached or refuses the request.
        """
        pass

    @abstractmethod
    def upsert(self, embeddings: list[list[float]], chunks: list[Chunk]) -> int:
        """Write one record per chunk and return how many were stored.

        Raises:
            StoreError: If the write fails.
        """
        pass

    @abstractmethod
    def search(self, query_embedding: list[float], k: int = 5) -> list[RetrievalResult]:
        """Return up to ``k`` chunks ordered by descending similarity.

        Raises:
            StoreUnavailableError: If the collection is missing or unreachable.
        """
        pass

    @property
    @abstractmethod
    def count(self) -> int:
        """Return the number of vectors in the collection."""
        pass
