from datetime import datetime, timezone
from typing import Optional

from models.chunk import Chunk

UNKNOWN_FILE_TYPE = "unknown"


def enrich_chunks(
    chunks: list[Chunk],
    source_type: Optional[str] = None,
    file_type: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> list[Chunk]:
    """Return new chunks carrying their position within the batch.

    All chunks of one call share a single ISO-8601 timestamp. The input
    chunks are not modified.
    """
    stamp = (timestamp or datetime.now(timezone.utc)).isoformat()
    total = len(chunks)

    enriched = []
    for index, chunk in enumerate(chunks):
        metadata = dict(chunk.metadata)
        metadata.update(
            {
                "chunkIndex": index,
                "totalChunks": total,
                "chunkSize": len(chunk.text),
                "timestamp": stamp,
                "fileType": file_type or UNKNOWN_FILE_TYPE,
            }
        )
        if source_type:
            metadata["sourceType"] = source_type
        enriched.append(Chunk(text=chunk.text, source=chunk.source, metadata=metadata))

    return enriched
