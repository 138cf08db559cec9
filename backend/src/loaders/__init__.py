import logging
from typing import Any, Optional

from llama_index.core.schema import Document as LlamaDocument

from config import get_config_value
from errors import NoContentError, ValidationError
from models.inputs import FileInput, RawInput, TextInput, UrlInput
from .base import BaseDocumentLoader
from .files import (
    DEFAULT_CSV_ROWS_PER_DOCUMENT,
    DEFAULT_MIN_PDF_BYTES,
    FileLoader,
    decode_base64_content,
    scoped_temp_file,
)
from .text import DIRECT_INPUT_SOURCE, TextLoader
from .web import DEFAULT_FETCH_TIMEOUT, UrlLoader

logger = logging.getLogger(__name__)


class LoaderDispatch:
    """Routes each raw input variant to its loader."""

    def __init__(
        self,
        url_loader: Optional[UrlLoader] = None,
        text_loader: Optional[TextLoader] = None,
        file_loader: Optional[FileLoader] = None,
    ):
        self.url_loader = url_loader or UrlLoader()
        self.text_loader = text_loader or TextLoader()
        self.file_loader = file_loader or FileLoader()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "LoaderDispatch":
        return cls(
            url_loader=UrlLoader(
                timeout=get_config_value(
                    config, "ingestion.fetch_timeout", DEFAULT_FETCH_TIMEOUT
                )
            ),
            file_loader=FileLoader(
                min_pdf_bytes=get_config_value(
                    config, "ingestion.min_pdf_bytes", DEFAULT_MIN_PDF_BYTES
                ),
                csv_rows_per_document=get_config_value(
                    config,
                    "ingestion.csv_rows_per_document",
                    DEFAULT_CSV_ROWS_PER_DOCUMENT,
                ),
            ),
        )

    def load(self, raw_input: RawInput) -> list[LlamaDocument]:
        """Load the input and drop documents without text.

        Raises:
            NoContentError: If nothing with text was loaded.
        """
        if isinstance(raw_input, UrlInput):
            documents = self.url_loader.load(raw_input.url)
        elif isinstance(raw_input, TextInput):
            documents = self.text_loader.load(raw_input.text)
        elif isinstance(raw_input, FileInput):
            documents = self.file_loader.load(raw_input)
        else:
            raise ValidationError(f"Unknown input type: {type(raw_input).__name__}")

        documents = [d for d in documents if d.text and d.text.strip()]
        if not documents:
            raise NoContentError("No documents were loaded")

        logger.info(f"Loaded {len(documents)} document(s) from {raw_input.kind} input")
        return documents


__all__ = [
    "BaseDocumentLoader",
    "DIRECT_INPUT_SOURCE",
    "FileLoader",
    "LoaderDispatch",
    "TextLoader",
    "UrlLoader",
    "decode_base64_content",
    "scoped_temp_file",
]
