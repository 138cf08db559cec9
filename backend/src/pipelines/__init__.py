from .base import (
    DEFAULT_CONTEXT_TEMPLATE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_MAX_CONTEXT_TOKENS,
    DEFAULT_TOP_K,
    check_dimensions,
    create_embedder_from_config,
    create_llm_from_config,
    create_store_for_embedder,
)
from .enrichment import enrich_chunks
from .ingestion import IngestionPipeline
from .retrieval import (
    NO_RELEVANT_INFORMATION_ANSWER,
    RetrievalPipeline,
    count_tokens,
)

__all__ = [
    "IngestionPipeline",
    "RetrievalPipeline",
    "enrich_chunks",
    "count_tokens",
    "check_dimensions",
    "create_embedder_from_config",
    "create_llm_from_config",
    "create_store_for_embedder",
    "NO_RELEVANT_INFORMATION_ANSWER",
    "DEFAULT_CONTEXT_TEMPLATE",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_OVERLAP",
    "DEFAULT_MAX_CONTEXT_TOKENS",
    "DEFAULT_TOP_K",
]
