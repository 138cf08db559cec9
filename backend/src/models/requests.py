"""Request and response bodies of the HTTP API."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from models.chunk import IngestionStats
from models.inputs import RawInput, parse_raw_input


class IngestRequest(BaseModel):
    url: Optional[str] = None
    text: Optional[str] = None
    fileContent: Optional[str] = None
    fileType: Optional[str] = None
    fileName: Optional[str] = None

    def to_raw_input(self) -> RawInput:
        return parse_raw_input(
            url=self.url,
            text=self.text,
            file_content=self.fileContent,
            file_type=self.fileType,
            file_name=self.fileName,
        )


class IngestResponse(BaseModel):
    success: bool = True
    message: str = "Documents processed and stored successfully"
    stats: IngestionStats


class QueryRequest(BaseModel):
    query: str


class QueryResponse(BaseModel):
    success: bool = True
    answer: str
    chunksRetrieved: int
    sources: list[str] = Field(default_factory=list)
    debug: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    stage: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: str
