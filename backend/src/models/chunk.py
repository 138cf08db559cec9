"""Data models for notebook-rag."""

from typing import Any

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """Represents a text chunk with preserved source metadata.

    Attributes:
        text: The chunk text content.
        source: Provenance of the parent document ("direct_input", a URL,
            or an uploaded file name).
        metadata: Copy of the parent document's metadata, extended with
            positional fields once the chunk is enriched.
    """

    text: str
    source: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Payload stored next to the vector in the collection."""
        return {"page_content": self.text, "metadata": dict(self.metadata)}


class RetrievalResult(BaseModel):
    """Represents a retrieved chunk with its similarity score.

    Attributes:
        text: The retrieved text content.
        source: The source recorded in the chunk metadata.
        score: Cosine similarity to the query, higher is closer.
        metadata: Metadata stored with the chunk.
    """

    text: str
    source: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None, score: float) -> "RetrievalResult":
        payload = payload or {}
        metadata = dict(payload.get("metadata") or {})
        return cls(
            text=payload.get("page_content", ""),
            source=str(metadata.get("source", "unknown")),
            score=float(score),
            metadata=metadata,
        )


class IngestionStats(BaseModel):
    """Counts reported after a successful ingestion."""

    originalDocuments: int
    chunksCreated: int
    chunksStored: int
    averageChunkSize: int


class QueryResult(BaseModel):
    """Answer plus the diagnostics of the retrieval that produced it."""

    answer: str
    chunksRetrieved: int
    sources: list[str] = Field(default_factory=list)
    debug: dict[str, Any] = Field(default_factory=dict)
