import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend" / "src"))

from adapters.base import BaseEmbedder, BaseLLM
from loaders import LoaderDispatch
from pipelines import IngestionPipeline, RetrievalPipeline
from splitters import TextSplitter
from stores import FAISSVectorStore, QdrantVectorStore, build_qdrant_client

TEST_DIMENSION = 8


class MockEmbedder(BaseEmbedder):
    """Mock embedder for testing.

    Texts listed in ``vectors`` get that vector, everything else a constant one.
    """

    def __init__(
        self,
        dimension: int = 1536,
        vectors: dict[str, list[float]] | None = None,
        **kwargs: Any,
    ):
        super().__init__("mock-embedder", **kwargs)
        self._dimension = dimension
        self.vectors = vectors or {}
        self.batch_calls: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        return self.vectors.get(text, [0.1] * self._dimension)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [self.embed(text) for text in texts]


class MockLLM(BaseLLM):
    """Mock LLM for testing; keeps every prompt it was given."""

    def __init__(self, model: str = "mock-llm", **kwargs: Any):
        super().__init__(model, **kwargs)
        self.prompts: list[str] = []

    def generate(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        return "Mock response"

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        self.prompts.append(messages[-1]["content"])
        return "Mock chat response"


@pytest.fixture
def mock_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=TEST_DIMENSION)


@pytest.fixture
def mock_llm() -> MockLLM:
    return MockLLM()


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def qdrant_store() -> QdrantVectorStore:
    client = build_qdrant_client(":memory:")
    return QdrantVectorStore("test-collection", TEST_DIMENSION, client=client)


@pytest.fixture
def faiss_store(temp_storage_dir: Path) -> FAISSVectorStore:
    return FAISSVectorStore("test-collection", TEST_DIMENSION, storage_dir=temp_storage_dir)


@pytest.fixture
def ingestion_pipeline(
    mock_embedder: MockEmbedder, qdrant_store: QdrantVectorStore, tmp_path: Path
) -> IngestionPipeline:
    loader = LoaderDispatch()
    loader.file_loader.temp_dir = tmp_path
    return IngestionPipeline(
        embedder=mock_embedder,
        splitter=TextSplitter(chunk_size=1000, chunk_overlap=200),
        loader=loader,
        vector_store=qdrant_store,
        batch_size=100,
    )


@pytest.fixture
def retrieval_pipeline(
    mock_embedder: MockEmbedder, mock_llm: MockLLM, qdrant_store: QdrantVectorStore
) -> RetrievalPipeline:
    return RetrievalPipeline(
        embedder=mock_embedder,
        llm=mock_llm,
        vector_store=qdrant_store,
        top_k=5,
    )


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    config_content = """
[embedding]
provider = "openai"
model = "text-embedding-3-small"
api_key = "test-key"

[llm]
provider = "openai"
model = "gpt-4o-mini"
api_key = "test-key"

[vector_store]
provider = "faiss"
collection = "${TEST_COLLECTION:-config-collection}"
dimension = 1536

[storage]
directory = "storage"

[ingestion]
chunk_size = 500
chunk_overlap = 50
batch_size = 10

[retrieval]
top_k = 3
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path
