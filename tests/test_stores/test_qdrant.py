import uuid
from unittest.mock import MagicMock

import httpx
import pytest
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from errors import ConfigurationError, StoreError, StoreUnavailableError
from models import Chunk
from stores import QdrantVectorStore, build_qdrant_client, create_vector_store

DIM = 8


def unit(index: int, dimension: int = DIM) -> list[float]:
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


def make_chunks(*texts: str) -> list[Chunk]:
    return [
        Chunk(text=text, source="notes.txt", metadata={"source": "notes.txt", "chunkIndex": i})
        for i, text in enumerate(texts)
    ]


class TestQdrantVectorStore:
    def test_ensure_collection_is_idempotent(self, qdrant_store: QdrantVectorStore) -> None:
        qdrant_store.ensure_collection()
        qdrant_store.ensure_collection()

        assert qdrant_store.client.collection_exists("test-collection")
        assert qdrant_store.count == 0

    def test_existing_collection_reused_by_new_store(self) -> None:
        client = build_qdrant_client(":memory:")
        QdrantVectorStore("shared", DIM, client=client).ensure_collection()

        second = QdrantVectorStore("shared", DIM, client=client)
        second.ensure_collection()

        assert second.count == 0

    def test_existing_collection_with_other_dimension_rejected(self) -> None:
        client = build_qdrant_client(":memory:")
        QdrantVectorStore("shared", DIM, client=client).ensure_collection()

        with pytest.raises(ConfigurationError, match="8-dimensional"):
            QdrantVectorStore("shared", 16, client=client).ensure_collection()

    def test_upsert_stores_payload_layout(self, qdrant_store: QdrantVectorStore) -> None:
        qdrant_store.ensure_collection()

        stored = qdrant_store.upsert([unit(0)], make_chunks("hello"))

        assert stored == 1
        points, _ = qdrant_store.client.scroll("test-collection", with_payload=True)
        assert points[0].payload == {
            "page_content": "hello",
            "metadata": {"source": "notes.txt", "chunkIndex": 0},
        }
        uuid.UUID(str(points[0].id))

    def test_upsert_is_append_only(self, qdrant_store: QdrantVectorStore) -> None:
        qdrant_store.ensure_collection()

        qdrant_store.upsert([unit(0)], make_chunks("same text"))
        qdrant_store.upsert([unit(0)], make_chunks("same text"))

        assert qdrant_store.count == 2

    def test_upsert_length_mismatch_raises(self, qdrant_store: QdrantVectorStore) -> None:
        qdrant_store.ensure_collection()
        with pytest.raises(StoreError):
            qdrant_store.upsert([unit(0)], make_chunks("a", "b"))

    def test_search_orders_by_similarity(self, qdrant_store: QdrantVectorStore) -> None:
        qdrant_store.ensure_collection()
        qdrant_store.upsert([unit(0), unit(1), unit(2)], make_chunks("alpha", "beta", "gamma"))

        query = [0.2, 0.9, 0.1, 0.0, 0.0, 0.0, 0.0, 0.0]
        results = qdrant_store.search(query, k=2)

        assert [r.text for r in results] == ["beta", "alpha"]
        assert results[0].score > results[1].score
        assert results[0].source == "notes.txt"
        assert results[0].metadata["chunkIndex"] == 1

    def test_search_empty_collection_returns_nothing(self, qdrant_store: QdrantVectorStore) -> None:
        qdrant_store.ensure_collection()
        assert qdrant_store.search(unit(0), k=5) == []

    def test_search_missing_collection_raises(self, qdrant_store: QdrantVectorStore) -> None:
        with pytest.raises(StoreUnavailableError, match="does not exist"):
            qdrant_store.search(unit(0), k=5)

    def test_search_unreachable_server_raises(self) -> None:
        client = MagicMock()
        client.collection_exists.side_effect = ResponseHandlingException(ConnectionError("refused"))
        store = QdrantVectorStore("test-collection", DIM, client=client)

        with pytest.raises(StoreUnavailableError, match="unreachable"):
            store.search(unit(0), k=5)

    def test_create_race_is_not_an_error(self) -> None:
        client = MagicMock()
        client.collection_exists.return_value = False
        client.create_collection.side_effect = UnexpectedResponse(
            status_code=409,
            reason_phrase="Conflict",
            content=b"already exists",
            headers=httpx.Headers(),
        )
        store = QdrantVectorStore("test-collection", DIM, client=client)

        store.ensure_collection()

        client.create_collection.assert_called_once()

    def test_upsert_failure_raises_store_error(self) -> None:
        client = MagicMock()
        client.upsert.side_effect = ResponseHandlingException(TimeoutError("timed out"))
        store = QdrantVectorStore("test-collection", DIM, client=client)

        with pytest.raises(StoreError):
            store.upsert([unit(0)], make_chunks("hello"))

    def test_unknown_distance_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            QdrantVectorStore("c", DIM, client=MagicMock(), distance="manhattan")


def test_create_vector_store_unknown_provider() -> None:
    with pytest.raises(ConfigurationError):
        create_vector_store("pinecone", "c", DIM)
