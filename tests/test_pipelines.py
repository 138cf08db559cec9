from pathlib import Path
from unittest.mock import patch

import pytest

from config import load_config
from conftest import TEST_DIMENSION, MockEmbedder, MockLLM
from errors import ConfigurationError, EmbeddingError, StoreUnavailableError, ValidationError
from loaders import LoaderDispatch
from models import Chunk, RetrievalResult, TextInput
from pipelines import (
    DEFAULT_CONTEXT_TEMPLATE,
    NO_RELEVANT_INFORMATION_ANSWER,
    IngestionPipeline,
    RetrievalPipeline,
    count_tokens,
)
from splitters import TextSplitter
from stores import FAISSVectorStore, QdrantVectorStore

LONG_TEXT = "\n\n".join(
    f"Section {i}. " + "Vector databases store embeddings for similarity search. " * 8
    for i in range(10)
)


class FailingEmbedder(MockEmbedder):
    """Fails on the n-th batch call."""

    def __init__(self, fail_on_call: int, **kwargs):
        super().__init__(**kwargs)
        self.fail_on_call = fail_on_call

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if len(self.batch_calls) + 1 == self.fail_on_call:
            self.batch_calls.append(list(texts))
            raise EmbeddingError("embedding service returned 503")
        return super().embed_batch(texts)


class TestIngestionPipeline:
    def test_short_text_is_one_enriched_chunk(
        self, ingestion_pipeline: IngestionPipeline, qdrant_store: QdrantVectorStore
    ) -> None:
        stats = ingestion_pipeline.ingest(TextInput(text="A. B. C."))

        assert stats.originalDocuments == 1
        assert stats.chunksCreated == 1
        assert stats.chunksStored == 1
        assert stats.averageChunkSize == 8

        points, _ = qdrant_store.client.scroll("test-collection", with_payload=True)
        metadata = points[0].payload["metadata"]
        assert points[0].payload["page_content"] == "A. B. C."
        assert metadata["chunkIndex"] == 0
        assert metadata["totalChunks"] == 1
        assert metadata["chunkSize"] == 8
        assert metadata["source"] == "direct_input"
        assert metadata["sourceType"] == "text"
        assert metadata["fileType"] == "unknown"

    def test_long_text_stored_in_batches(
        self, mock_embedder: MockEmbedder, qdrant_store: QdrantVectorStore
    ) -> None:
        pipeline = IngestionPipeline(
            embedder=mock_embedder,
            splitter=TextSplitter(chunk_size=300, chunk_overlap=50),
            loader=LoaderDispatch(),
            vector_store=qdrant_store,
            batch_size=4,
        )

        stats = pipeline.ingest(TextInput(text=LONG_TEXT))

        assert stats.chunksCreated > 4
        assert stats.chunksStored == stats.chunksCreated
        assert qdrant_store.count == stats.chunksCreated
        assert all(len(batch) <= 4 for batch in mock_embedder.batch_calls)
        assert sum(len(batch) for batch in mock_embedder.batch_calls) == stats.chunksCreated

    def test_upsert_nothing_skips_store(
        self, ingestion_pipeline: IngestionPipeline, qdrant_store: QdrantVectorStore
    ) -> None:
        assert ingestion_pipeline.upsert([]) == 0
        assert not qdrant_store.client.collection_exists("test-collection")

    def test_partial_failure_reports_stored_count(
        self, qdrant_store: QdrantVectorStore
    ) -> None:
        pipeline = IngestionPipeline(
            embedder=FailingEmbedder(fail_on_call=2, dimension=TEST_DIMENSION),
            splitter=TextSplitter(chunk_size=300, chunk_overlap=50),
            loader=LoaderDispatch(),
            vector_store=qdrant_store,
            batch_size=2,
        )

        with pytest.raises(EmbeddingError) as exc_info:
            pipeline.ingest(TextInput(text=LONG_TEXT))

        assert exc_info.value.details["stored"] == 2
        assert exc_info.value.details["attempted"] > 2
        assert qdrant_store.count == 2

    def test_blank_text_rejected_before_storage(
        self, ingestion_pipeline: IngestionPipeline, mock_embedder: MockEmbedder
    ) -> None:
        with pytest.raises(ValidationError):
            ingestion_pipeline.ingest(TextInput(text="   "))
        assert mock_embedder.batch_calls == []

    def test_dimension_mismatch_rejected(self, qdrant_store: QdrantVectorStore) -> None:
        with pytest.raises(ConfigurationError):
            IngestionPipeline(
                embedder=MockEmbedder(dimension=TEST_DIMENSION * 2),
                splitter=TextSplitter(),
                loader=None,
                vector_store=qdrant_store,
            )

    def test_from_config(self, temp_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TEST_COLLECTION", "env-collection")
        config = load_config(temp_config)

        pipeline = IngestionPipeline.from_config(config, temp_config)

        assert pipeline.splitter.chunk_size == 500
        assert pipeline.splitter.chunk_overlap == 50
        assert pipeline.batch_size == 10
        assert isinstance(pipeline.vector_store, FAISSVectorStore)
        assert pipeline.vector_store.collection == "env-collection"
        assert pipeline.vector_store.dimension == pipeline.embedder.dimension == 1536


class TestRetrievalPipeline:
    def test_end_to_end_answer(
        self,
        ingestion_pipeline: IngestionPipeline,
        retrieval_pipeline: RetrievalPipeline,
        mock_llm: MockLLM,
    ) -> None:
        ingestion_pipeline.ingest(TextInput(text="Qdrant stores vectors in collections."))

        result = retrieval_pipeline.query("Where are vectors stored?")

        assert result.answer == "Mock response"
        assert result.chunksRetrieved == 1
        assert result.sources == ["direct_input"]
        assert result.debug["chunkSizes"] == [len("Qdrant stores vectors in collections.")]
        assert result.debug["contextLength"] > 0

        prompt = mock_llm.prompts[0]
        assert "[Document 1] (source: direct_input)\nQdrant stores vectors in collections." in prompt
        assert "Where are vectors stored?" in prompt
        assert "Answer ONLY based on the provided context" in prompt

    def test_empty_collection_skips_llm(
        self,
        retrieval_pipeline: RetrievalPipeline,
        qdrant_store: QdrantVectorStore,
        mock_llm: MockLLM,
    ) -> None:
        qdrant_store.ensure_collection()

        result = retrieval_pipeline.query("Anything there?")

        assert result.answer == NO_RELEVANT_INFORMATION_ANSWER
        assert result.chunksRetrieved == 0
        assert result.sources == []
        assert mock_llm.prompts == []

    def test_answer_without_results_skips_llm(
        self, retrieval_pipeline: RetrievalPipeline, mock_llm: MockLLM
    ) -> None:
        assert retrieval_pipeline.answer("question", []) == NO_RELEVANT_INFORMATION_ANSWER
        assert mock_llm.prompts == []

    @pytest.mark.parametrize("question", ["", "   ", None])
    def test_blank_question_rejected_before_retrieval(
        self, retrieval_pipeline: RetrievalPipeline, question
    ) -> None:
        with patch.object(retrieval_pipeline, "retrieve") as mock_retrieve:
            with pytest.raises(ValidationError):
                retrieval_pipeline.query(question)
        mock_retrieve.assert_not_called()

    def test_missing_collection_raises(self, retrieval_pipeline: RetrievalPipeline) -> None:
        with pytest.raises(StoreUnavailableError):
            retrieval_pipeline.query("Is anything stored?")

    def test_retrieve_orders_and_limits(
        self, mock_llm: MockLLM, qdrant_store: QdrantVectorStore
    ) -> None:
        vectors = {
            "near": [1.0, 0.1, 0, 0, 0, 0, 0, 0],
            "far": [0.0, 1.0, 0, 0, 0, 0, 0, 0],
            "question": [1.0, 0.0, 0, 0, 0, 0, 0, 0],
        }
        embedder = MockEmbedder(dimension=TEST_DIMENSION, vectors=vectors)
        qdrant_store.ensure_collection()

        chunks = [Chunk(text=t, source=t, metadata={"source": t}) for t in ("far", "near")]
        qdrant_store.upsert(embedder.embed_batch(["far", "near"]), chunks)
        pipeline = RetrievalPipeline(embedder=embedder, llm=mock_llm, vector_store=qdrant_store)

        assert [r.text for r in pipeline.retrieve("question")] == ["near", "far"]
        assert [r.text for r in pipeline.retrieve("question", top_k=1)] == ["near"]

    def test_context_truncated_to_token_budget(
        self, mock_embedder: MockEmbedder, mock_llm: MockLLM, qdrant_store: QdrantVectorStore
    ) -> None:
        results = [
            RetrievalResult(text="first document " * 20, source="a", score=0.9),
            RetrievalResult(text="second document " * 20, source="b", score=0.8),
        ]
        question = "What is in the documents?"
        overhead = count_tokens(
            DEFAULT_CONTEXT_TEMPLATE.format(context="", question=question), mock_llm.model
        )
        first_block = count_tokens(f"[Document 1] (source: a)\n{results[0].text}", mock_llm.model)
        pipeline = RetrievalPipeline(
            embedder=mock_embedder,
            llm=mock_llm,
            vector_store=qdrant_store,
            max_context_tokens=overhead + first_block + 5,
        )

        context = pipeline.build_context(question, results)

        assert "[Document 1]" in context
        assert "[Document 2]" not in context
        assert pipeline.answer(question, results) == "Mock response"
        assert "second document" not in mock_llm.prompts[-1]

    def test_oversized_first_document_skips_llm(
        self, mock_embedder: MockEmbedder, mock_llm: MockLLM, qdrant_store: QdrantVectorStore
    ) -> None:
        long_text = "embeddings " * 400
        qdrant_store.ensure_collection()
        qdrant_store.upsert(
            [mock_embedder.embed(long_text)],
            [Chunk(text=long_text, source="long.txt", metadata={"source": "long.txt"})],
        )
        pipeline = RetrievalPipeline(
            embedder=mock_embedder,
            llm=mock_llm,
            vector_store=qdrant_store,
            max_context_tokens=50,
        )
        results = pipeline.retrieve("What is stored?")

        assert pipeline.build_context("What is stored?", results) == ""
        assert pipeline.answer("What is stored?", results) == NO_RELEVANT_INFORMATION_ANSWER

        result = pipeline.query("What is stored?")

        assert result.answer == NO_RELEVANT_INFORMATION_ANSWER
        assert result.chunksRetrieved == 1
        assert result.debug["contextLength"] == 0
        assert mock_llm.prompts == []

    def test_explicit_zero_top_k_returns_nothing(
        self, retrieval_pipeline: RetrievalPipeline, mock_embedder: MockEmbedder
    ) -> None:
        with patch.object(mock_embedder, "embed") as mock_embed:
            assert retrieval_pipeline.retrieve("question", top_k=0) == []
        mock_embed.assert_not_called()


def test_pipelines_from_config_share_one_store(temp_config: Path) -> None:
    config = load_config(temp_config)
    ingestion = IngestionPipeline.from_config(config, temp_config)

    retrieval = RetrievalPipeline.from_config(
        config, temp_config, vector_store=ingestion.vector_store
    )

    assert retrieval.vector_store is ingestion.vector_store
