from pathlib import Path
from typing import Any, Optional

from config import (
    DEFAULT_DIMENSION,
    DEFAULT_DISTANCE,
    get_collection_name,
    get_config_value,
    get_storage_dir,
)
from errors import ConfigurationError
from .base import BaseVectorStore
from .faiss import FAISSVectorStore
from .qdrant import QdrantVectorStore, build_qdrant_client


def create_vector_store(
    provider: str,
    collection: str,
    dimension: int,
    **kwargs: Any,
) -> BaseVectorStore:
    """Create a vector store instance based on provider.

    Args:
        provider: Provider name ("qdrant" or "faiss")
        collection: Collection name
        dimension: Embedding dimension
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseVectorStore instance
    """
    if provider == "qdrant":
        client = kwargs.pop("client", None) or build_qdrant_client(
            url=kwargs.pop("url", "http://localhost:6333"),
            api_key=kwargs.pop("api_key", None),
            timeout=kwargs.pop("timeout", 10),
        )
        return QdrantVectorStore(collection, dimension, client=client, **kwargs)
    elif provider == "faiss":
        return FAISSVectorStore(collection, dimension, **kwargs)
    else:
        raise ConfigurationError(f"Unknown vector store provider: {provider}")


def create_vector_store_from_config(
    config: dict[str, Any], config_path: Optional[Path] = None
) -> BaseVectorStore:
    """Build the configured store for the shared collection."""
    provider = get_config_value(config, "vector_store.provider") or "qdrant"
    collection = get_collection_name(config)
    dimension = int(get_config_value(config, "vector_store.dimension", DEFAULT_DIMENSION))

    if provider == "faiss":
        storage_dir = get_storage_dir(config, config_path or Path("config.toml"))
        return create_vector_store(
            provider, collection, dimension, storage_dir=storage_dir
        )

    return create_vector_store(
        provider,
        collection,
        dimension,
        url=get_config_value(config, "vector_store.url") or "http://localhost:6333",
        api_key=get_config_value(config, "vector_store.api_key") or None,
        timeout=get_config_value(config, "vector_store.timeout", 10),
        distance=get_config_value(config, "vector_store.distance", DEFAULT_DISTANCE),
    )


__all__ = [
    "BaseVectorStore",
    "FAISSVectorStore",
    "QdrantVectorStore",
    "build_qdrant_client",
    "create_vector_store",
    "create_vector_store_from_config",
]
