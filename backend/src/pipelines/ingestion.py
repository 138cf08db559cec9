import logging
from pathlib import Path
from typing import Any, Optional

from adapters import BaseEmbedder
from config import get_config_value
from errors import NotebookRAGError
from loaders import LoaderDispatch
from models import Chunk, FileInput, IngestionStats, RawInput
from splitters import BaseTextSplitter, TextSplitter
from stores import BaseVectorStore
from .base import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    check_dimensions,
    create_embedder_from_config,
    create_store_for_embedder,
)
from .enrichment import enrich_chunks

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Pipeline for turning one raw input into stored chunk vectors.

    Supports dependency injection; ``from_config`` builds the default wiring.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        splitter: BaseTextSplitter,
        loader: LoaderDispatch,
        vector_store: BaseVectorStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        check_dimensions(embedder, vector_store)
        self.embedder = embedder
        self.splitter = splitter
        self.loader = loader
        self.vector_store = vector_store
        self.batch_size = batch_size

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        config_path: Optional[Path] = None,
        vector_store: Optional[BaseVectorStore] = None,
    ) -> "IngestionPipeline":
        """Create pipeline from configuration dictionary.

        Pass ``vector_store`` to write into a store that is already open.
        """
        embedder = create_embedder_from_config(config)
        if vector_store is None:
            vector_store = create_store_for_embedder(config, embedder, config_path)

        chunk_size = get_config_value(config, "ingestion.chunk_size", DEFAULT_CHUNK_SIZE)
        chunk_overlap = get_config_value(
            config, "ingestion.chunk_overlap", DEFAULT_CHUNK_OVERLAP
        )
        splitter = TextSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)

        batch_size = get_config_value(
            config, "ingestion.batch_size", DEFAULT_BATCH_SIZE
        )

        return cls(
            embedder=embedder,
            splitter=splitter,
            loader=LoaderDispatch.from_config(config),
            vector_store=vector_store,
            batch_size=batch_size,
        )

    def upsert(self, chunks: list[Chunk]) -> int:
        """Embed chunks batch by batch and write them to the collection.

        Returns the number of records stored, equal to ``len(chunks)``.

        Raises:
            EmbeddingError, StoreError: With ``details["stored"]`` set to the
                number of records written before the failing batch.
        """
        if not chunks:
            return 0

        self.vector_store.ensure_collection()

        total = len(chunks)
        stored = 0
        for i in range(0, total, self.batch_size):
            batch = chunks[i : i + self.batch_size]
            batch_num = i // self.batch_size + 1
            try:
                embeddings = self.embedder.embed_batch([c.text for c in batch])
                stored += self.vector_store.upsert(embeddings, batch)
            except NotebookRAGError as e:
                e.details.update({"stored": stored, "attempted": total})
                logger.error(
                    f"Batch {batch_num} failed after {stored}/{total} chunks were stored"
                )
                raise

            logger.info(f"Stored batch {batch_num}: {stored}/{total} chunks")

        return stored

    def ingest(self, raw_input: RawInput) -> IngestionStats:
        """Run load, split, enrich and upsert for one input."""
        logger.info(f"Loading {raw_input.kind} input...")
        documents = self.loader.load(raw_input)

        logger.info("Splitting documents into chunks...")
        chunks = self.splitter.split_documents(documents)
        logger.info(f"Created {len(chunks)} chunks from {len(documents)} documents")

        file_type = raw_input.file_type if isinstance(raw_input, FileInput) else None
        chunks = enrich_chunks(chunks, source_type=raw_input.kind, file_type=file_type)

        logger.info("Generating embeddings and storing chunks...")
        stored = self.upsert(chunks)

        average = round(sum(len(c.text) for c in chunks) / len(chunks)) if chunks else 0
        stats = IngestionStats(
            originalDocuments=len(documents),
            chunksCreated=len(chunks),
            chunksStored=stored,
            averageChunkSize=average,
        )
        logger.info(f"Ingestion complete: {stats.model_dump()}")
        return stats
