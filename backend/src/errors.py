"""Exception hierarchy for notebook-rag.

Every error carries the pipeline stage it came from and the HTTP status the
API reports for it, so a failed request always says where it stopped.
"""

from typing import Any


class NotebookRAGError(Exception):
    """Base exception for all notebook-rag errors."""

    status_code: int = 500
    stage: str = "internal"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(NotebookRAGError):
    """Raised when a request is missing input or has the wrong shape."""

    status_code = 400
    stage = "validate"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ConfigurationError(NotebookRAGError):
    """Raised when the configuration cannot produce a working pipeline."""

    stage = "config"


class LoaderError(NotebookRAGError):
    """Base exception for failures while turning raw input into documents."""

    stage = "load"


class UnsupportedTypeError(LoaderError):
    """Raised for a declared file type no loader handles."""

    def __init__(self, file_type: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["file_type"] = file_type
        super().__init__(f"Unsupported file type: {file_type}", details)


class InvalidFormatError(LoaderError):
    """Raised when file bytes do not match their declared format."""


class NoContentError(LoaderError):
    """Raised when loading succeeded but produced no usable text."""


class FetchError(LoaderError):
    """Raised when a URL cannot be fetched."""


class ParseError(LoaderError):
    """Raised when fetched or uploaded content cannot be parsed."""


class EmbeddingError(NotebookRAGError):
    """Raised when the embedding provider fails."""

    stage = "embed"


class StoreError(NotebookRAGError):
    """Raised when writing to the vector collection fails."""

    stage = "store"


class StoreUnavailableError(NotebookRAGError):
    """Raised when the collection is missing or unreachable at query time."""

    stage = "retrieve"


class GenerationError(NotebookRAGError):
    """Raised when the chat model fails to produce an answer."""

    stage = "generate"
