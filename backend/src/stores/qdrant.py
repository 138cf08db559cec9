import logging
import uuid
from typing import Optional

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance, PointStruct, UpdateStatus, VectorParams

from errors import ConfigurationError, StoreError, StoreUnavailableError
from models.chunk import Chunk, RetrievalResult
from .base import BaseVectorStore

logger = logging.getLogger(__name__)

DISTANCES = {
    "cosine": Distance.COSINE,
    "dot": Distance.DOT,
    "euclid": Distance.EUCLID,
}

# Errors the client raises for HTTP failures and refused requests
QDRANT_ERRORS = (UnexpectedResponse, ResponseHandlingException)


def build_qdrant_client(
    url: str,
    api_key: Optional[str] = None,
    timeout: int = 10,
) -> QdrantClient:
    """Create a client; ``:memory:`` gives an in-process instance."""
    if url == ":memory:":
        return QdrantClient(location=":memory:")
    return QdrantClient(
        url=url,
        api_key=api_key or None,
        timeout=int(timeout),
        check_compatibility=False,
    )


class QdrantVectorStore(BaseVectorStore):
    """Collection on a Qdrant server.

    Points get random UUIDs and a ``{"page_content", "metadata"}`` payload.
    """

    def __init__(
        self,
        collection: str,
        dimension: int,
        client: QdrantClient,
        distance: str = "cosine",
    ):
        super().__init__(collection, dimension)
        if distance not in DISTANCES:
            raise ConfigurationError(
                f"Unknown distance {distance!r}. Available: {list(DISTANCES)}"
            )
        self.client = client
        self.distance = DISTANCES[distance]
        self._collection_ready = False

    def ensure_collection(self) -> None:
        if self._collection_ready:
            return

        try:
            if self.client.collection_exists(self.collection):
                self._check_dimension()
            else:
                logger.info(
                    f"Creating collection {self.collection} "
                    f"(dimension={self.dimension}, distance={self.distance.value})"
                )
                self.client.create_collection(
                    collection_name=self.collection,
                    vectors_config=VectorParams(size=self.dimension, distance=self.distance),
                )
        except UnexpectedResponse as e:
            # another writer created it between the check and the create
            if e.status_code != 409:
                raise StoreError(f"Failed to create collection {self.collection}: {e}") from e
        except ResponseHandlingException as e:
            raise StoreError(f"Vector store unreachable: {e}") from e

        self._collection_ready = True

    def _check_dimension(self) -> None:
        info = self.client.get_collection(self.collection)
        size = getattr(info.config.params.vectors, "size", None)
        if size is not None and size != self.dimension:
            raise ConfigurationError(
                f"Collection {self.collection} stores {size}-dimensional vectors, "
                f"but the embedder produces {self.dimension}"
            )

    def upsert(self, embeddings: list[list[float]], chunks: list[Chunk]) -> int:
        if len(embeddings) != len(chunks):
            raise StoreError(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks"
            )
        if not chunks:
            return 0

        points = [
            PointStruct(
                id=str(uuid.uuid4()),
                vector=list(embedding),
                payload=chunk.to_payload(),
            )
            for embedding, chunk in zip(embeddings, chunks)
        ]

        try:
            result = self.client.upsert(
                collection_name=self.collection, points=points, wait=True
            )
        except (*QDRANT_ERRORS, ValueError) as e:
            raise StoreError(f"Failed to write {len(points)} points: {e}") from e

        if result.status != UpdateStatus.COMPLETED:
            raise StoreError(
                f"Write to {self.collection} did not complete (status: {result.status})"
            )
        return len(points)

    def search(self, query_embedding: list[float], k: int = 5) -> list[RetrievalResult]:
        try:
            if not self.client.collection_exists(self.collection):
                raise StoreUnavailableError(
                    f"Collection {self.collection} does not exist; ingest documents first"
                )
            response = self.client.query_points(
                collection_name=self.collection,
                query=list(query_embedding),
                limit=k,
                with_payload=True,
            )
        except QDRANT_ERRORS as e:
            raise StoreUnavailableError(f"Vector store unreachable: {e}") from e

        results = [
            RetrievalResult.from_payload(point.payload, point.score)
            for point in response.points
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    @property
    def count(self) -> int:
        if not self.client.collection_exists(self.collection):
            return 0
        return self.client.count(collection_name=self.collection, exact=True).count
