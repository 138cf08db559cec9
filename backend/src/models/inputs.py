"""Raw ingestion inputs.

A request carries exactly one of a URL, inline text or an encoded file.
Each variant is its own model so the loader can dispatch on the type
instead of probing optional fields.
"""

import base64
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel

from errors import ValidationError

SUPPORTED_FILE_TYPES = ("pdf", "csv", "txt")


class UrlInput(BaseModel):
    kind: Literal["url"] = "url"
    url: str


class TextInput(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class FileInput(BaseModel):
    """Base64-transported file plus its declared type.

    ``file_type`` is not restricted here; unknown types are rejected by the
    loader with UnsupportedTypeError.
    """

    kind: Literal["file"] = "file"
    content: str
    file_type: str
    file_name: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path | str, file_type: Optional[str] = None) -> "FileInput":
        path = Path(path)
        return cls(
            content=base64.b64encode(path.read_bytes()).decode("ascii"),
            file_type=(file_type or path.suffix.lstrip(".")).lower(),
            file_name=path.name,
        )


RawInput = Union[UrlInput, TextInput, FileInput]


def _populated(value: Optional[str]) -> bool:
    return value is not None and value != ""


def parse_raw_input(
    url: Optional[str] = None,
    text: Optional[str] = None,
    file_content: Optional[str] = None,
    file_type: Optional[str] = None,
    file_name: Optional[str] = None,
) -> RawInput:
    """Build the single populated input variant.

    Raises:
        ValidationError: If zero or several variants are populated, or a
            file is sent without its type.
    """
    populated = [
        name
        for name, value in (("url", url), ("text", text), ("fileContent", file_content))
        if _populated(value)
    ]

    if not populated:
        raise ValidationError(
            "No valid input provided: send one of url, text or fileContent"
        )
    if len(populated) > 1:
        raise ValidationError(
            "Exactly one input must be provided",
            details={"provided": populated},
        )

    if populated[0] == "url":
        if not url.strip():
            raise ValidationError("URL is blank", field="url")
        return UrlInput(url=url.strip())

    if populated[0] == "text":
        return TextInput(text=text)

    if not _populated(file_type):
        raise ValidationError("fileType is required with fileContent", field="fileType")
    return FileInput(
        content=file_content,
        file_type=file_type.strip().lower(),
        file_name=file_name or None,
    )
