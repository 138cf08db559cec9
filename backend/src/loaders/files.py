"""Loaders for base64-transported uploads.

The readers underneath work on paths, so decoded bytes are written to a
temporary file that is removed however loading ends.
"""

import base64
import binascii
import logging
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

import pandas as pd
from llama_index.core import SimpleDirectoryReader
from llama_index.core.schema import Document as LlamaDocument
from llama_index.readers.file import PDFReader

from errors import (
    InvalidFormatError,
    ParseError,
    UnsupportedTypeError,
    ValidationError,
)
from models.inputs import FileInput
from .base import BaseDocumentLoader

logger = logging.getLogger(__name__)

PDF_MAGIC_BYTES = b"%PDF-"
DEFAULT_MIN_PDF_BYTES = 1024
DEFAULT_CSV_ROWS_PER_DOCUMENT = 1

_DATA_URL_PREFIX = re.compile(r"^data:[^,]*,")
_WHITESPACE = re.compile(r"\s+")


def decode_base64_content(content: str) -> bytes:
    """Decode a base64 upload, tolerating a data-URL prefix and line breaks.

    Raises:
        InvalidFormatError: If the payload is not valid base64.
        ValidationError: If it decodes to zero bytes.
    """
    cleaned = _DATA_URL_PREFIX.sub("", content.strip(), count=1)
    cleaned = _WHITESPACE.sub("", cleaned)
    try:
        data = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidFormatError(f"fileContent is not valid base64: {e}") from e
    if not data:
        raise ValidationError("fileContent decoded to zero bytes", field="fileContent")
    return data


@contextmanager
def scoped_temp_file(
    data: bytes, suffix: str, directory: Optional[Path] = None
) -> Iterator[Path]:
    """Write ``data`` to a temporary file and remove it when the block exits."""
    fd, name = tempfile.mkstemp(prefix="upload-", suffix=suffix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
            logger.debug(f"Temporary file cleaned up: {path}")
        except OSError as e:
            logger.warning(f"Failed to remove temporary file {path}: {e}")


class FileLoader(BaseDocumentLoader):
    """Dispatches decoded uploads to the reader for their declared type."""

    def __init__(
        self,
        min_pdf_bytes: int = DEFAULT_MIN_PDF_BYTES,
        csv_rows_per_document: int = DEFAULT_CSV_ROWS_PER_DOCUMENT,
        temp_dir: Optional[Path | str] = None,
    ):
        if csv_rows_per_document < 1:
            raise ValueError("csv_rows_per_document must be >= 1")
        self.min_pdf_bytes = min_pdf_bytes
        self.csv_rows_per_document = csv_rows_per_document
        self.temp_dir = Path(temp_dir) if temp_dir else None
        self._readers: dict[str, Callable[[Path, str], list[LlamaDocument]]] = {
            "pdf": self._read_pdf,
            "csv": self._read_csv,
            "txt": self._read_txt,
        }

    def load(self, file_input: FileInput) -> list[LlamaDocument]:
        file_type = file_input.file_type.lower()
        reader = self._readers.get(file_type)
        if reader is None:
            raise UnsupportedTypeError(file_type)

        data = decode_base64_content(file_input.content)
        logger.info(f"Decoded {file_type} upload: {len(data)} bytes")
        if file_type == "pdf":
            self._validate_pdf(data)

        source = file_input.file_name or f"upload.{file_type}"
        with scoped_temp_file(data, f".{file_type}", self.temp_dir) as path:
            return reader(path, source)

    def _validate_pdf(self, data: bytes) -> None:
        if len(data) < self.min_pdf_bytes:
            raise InvalidFormatError(
                f"PDF file too small: {len(data)} bytes",
                details={"min_bytes": self.min_pdf_bytes},
            )
        if not data.startswith(PDF_MAGIC_BYTES):
            header = data[:8].decode("latin-1")
            raise InvalidFormatError(f"Invalid PDF header: {header!r}")

    def _read_pdf(self, path: Path, source: str) -> list[LlamaDocument]:
        try:
            reader = SimpleDirectoryReader(
                input_files=[str(path)],
                file_extractor={".pdf": PDFReader(return_full_document=False)},
            )
            pages = reader.load_data()
        except Exception as e:
            raise ParseError(f"Failed to read PDF {source}: {e}") from e

        return [
            LlamaDocument(
                text=page.text,
                metadata={
                    "source": source,
                    "page_label": page.metadata.get("page_label", str(i + 1)),
                },
            )
            for i, page in enumerate(pages)
        ]

    def _read_csv(self, path: Path, source: str) -> list[LlamaDocument]:
        try:
            frame = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
            raise ParseError(f"Failed to parse CSV {source}: {e}") from e

        rows = [
            "\n".join(f"{column}: {str(value).strip()}" for column, value in record.items())
            for record in frame.to_dict(orient="records")
        ]

        documents = []
        for start in range(0, len(rows), self.csv_rows_per_document):
            group = rows[start : start + self.csv_rows_per_document]
            documents.append(
                LlamaDocument(
                    text="\n\n".join(group),
                    metadata={"source": source, "row": start},
                )
            )
        return documents

    def _read_txt(self, path: Path, source: str) -> list[LlamaDocument]:
        try:
            documents = SimpleDirectoryReader(input_files=[str(path)]).load_data()
        except Exception as e:
            raise ParseError(f"Failed to read text file {source}: {e}") from e

        text = "".join(document.text for document in documents)
        return [LlamaDocument(text=text, metadata={"source": source})]
