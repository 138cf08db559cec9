import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import find_config_path, get_collection_name, load_config
from errors import NotebookRAGError
from models.requests import ErrorResponse
from pipelines import IngestionPipeline, RetrievalPipeline
from stores import BaseVectorStore
from .routes import router

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error: str,
    stage: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        stage=stage,
        details=details or {},
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


class PipelineState:
    """Holds the pipelines of one app, building them from config on first use.

    Both pipelines write and read through the same store instance.
    """

    def __init__(
        self,
        config: dict[str, Any],
        config_path: Optional[Path],
        ingestion_pipeline: Optional[IngestionPipeline] = None,
        retrieval_pipeline: Optional[RetrievalPipeline] = None,
    ):
        self.config = config
        self.config_path = config_path
        self._ingestion = ingestion_pipeline
        self._retrieval = retrieval_pipeline
        self._lock = threading.Lock()

    @property
    def collection(self) -> str:
        return get_collection_name(self.config)

    def _shared_store(self) -> Optional[BaseVectorStore]:
        for pipeline in (self._ingestion, self._retrieval):
            if pipeline is not None:
                return pipeline.vector_store
        return None

    def ingestion(self) -> IngestionPipeline:
        with self._lock:
            if self._ingestion is None:
                self._ingestion = IngestionPipeline.from_config(
                    self.config, self.config_path, vector_store=self._shared_store()
                )
            return self._ingestion

    def retrieval(self) -> RetrievalPipeline:
        with self._lock:
            if self._retrieval is None:
                self._retrieval = RetrievalPipeline.from_config(
                    self.config, self.config_path, vector_store=self._shared_store()
                )
            return self._retrieval


def create_app(
    config_path: Optional[Path] = None,
    ingestion_pipeline: Optional[IngestionPipeline] = None,
    retrieval_pipeline: Optional[RetrievalPipeline] = None,
    config: Optional[dict[str, Any]] = None,
) -> FastAPI:
    """Build the API.

    Pipelines passed in are used as is; missing ones are built from the
    configuration when the first request needs them.
    """
    if config is None:
        try:
            config_path = find_config_path(config_path)
            config = load_config(config_path)
        except FileNotFoundError:
            if config_path is not None:
                raise
            logger.warning("config.toml not found, using built-in defaults")
            config = {}

    app = FastAPI(title="Notebook RAG API", version="0.1.0")
    app.state.pipelines = PipelineState(
        config, config_path, ingestion_pipeline, retrieval_pipeline
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotebookRAGError)
    async def notebook_rag_error_handler(request: Request, exc: NotebookRAGError):
        if exc.status_code >= 500:
            logger.error(f"{request.url.path} failed at stage {exc.stage}: {exc}")
        else:
            logger.info(f"{request.url.path} rejected: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.stage, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = [
            {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg", "")}
            for e in exc.errors()
        ]
        return error_response(400, "Invalid request body", "validate", {"errors": errors})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return error_response(500, str(exc) or type(exc).__name__, "internal")

    app.include_router(router)
    return app
