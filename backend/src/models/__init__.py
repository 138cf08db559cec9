from .chunk import Chunk, IngestionStats, QueryResult, RetrievalResult
from .inputs import (
    SUPPORTED_FILE_TYPES,
    FileInput,
    RawInput,
    TextInput,
    UrlInput,
    parse_raw_input,
)

__all__ = [
    "Chunk",
    "IngestionStats",
    "QueryResult",
    "RetrievalResult",
    "SUPPORTED_FILE_TYPES",
    "FileInput",
    "RawInput",
    "TextInput",
    "UrlInput",
    "parse_raw_input",
]
