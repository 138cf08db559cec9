from pathlib import Path
from typing import Any, Callable, Optional

from adapters import BaseEmbedder, BaseLLM, create_embedder, create_llm
from errors import ConfigurationError
from stores import BaseVectorStore, create_vector_store_from_config

DEFAULT_CONTEXT_TEMPLATE = """You are an AI assistant helping users understand their uploaded documents.

Instructions:
- Answer ONLY based on the provided context below
- If the context doesn't contain enough information to answer the question, say so clearly
- Be concise and accurate
- Cite which document the information came from when relevant

Context from uploaded documents:
{context}

User Question: {question}

Answer:"""

DEFAULT_BATCH_SIZE = 100
DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_TOP_K = 5
DEFAULT_MAX_CONTEXT_TOKENS = 6000


def _create_adapter_from_config(
    config: dict[str, Any],
    section: str,
    create_fn: Callable[..., Any],
    defaults: dict[str, str],
) -> Any:
    """Create an adapter (embedder or LLM) from configuration."""
    section_config = config.get(section, {})
    provider = section_config.get("provider", defaults["provider"])
    model = section_config.get("model", defaults["model"])

    extra_kwargs = {
        k: v
        for k, v in section_config.items()
        if k not in ("provider", "model") and v not in (None, "")
    }

    return create_fn(provider, model=model, **extra_kwargs)


def create_embedder_from_config(config: dict[str, Any]) -> BaseEmbedder:
    """Create an embedder instance from configuration.

    Ingestion and retrieval both call this, so documents and questions are
    always embedded with the same model.
    """
    defaults = {"provider": "openai", "model": "text-embedding-3-small"}
    return _create_adapter_from_config(config, "embedding", create_embedder, defaults)


def create_llm_from_config(config: dict[str, Any]) -> BaseLLM:
    """Create an LLM instance from configuration."""
    defaults = {"provider": "openai", "model": "gpt-4o-mini"}
    return _create_adapter_from_config(config, "llm", create_llm, defaults)


def create_store_for_embedder(
    config: dict[str, Any],
    embedder: BaseEmbedder,
    config_path: Optional[Path] = None,
) -> BaseVectorStore:
    """Create the configured store and check it matches the embedder.

    Raises:
        ConfigurationError: If the collection dimension differs from the
            embedder's output dimension.
    """
    vector_store = create_vector_store_from_config(config, config_path)
    check_dimensions(embedder, vector_store)
    return vector_store


def check_dimensions(embedder: BaseEmbedder, vector_store: BaseVectorStore) -> None:
    if embedder.dimension != vector_store.dimension:
        raise ConfigurationError(
            f"Embedder {embedder.model} produces {embedder.dimension}-dimensional "
            f"vectors but collection {vector_store.collection} expects "
            f"{vector_store.dimension}",
            details={
                "embedder_dimension": embedder.dimension,
                "store_dimension": vector_store.dimension,
            },
        )
