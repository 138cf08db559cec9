import logging

from fastapi import APIRouter, Request

from models.requests import IngestRequest, IngestResponse, QueryRequest, QueryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ingest", response_model=IngestResponse)
def ingest(body: IngestRequest, request: Request):
    """Load, chunk, embed and store one URL, text or file."""
    raw_input = body.to_raw_input()
    logger.info(f"Ingest request received | kind={raw_input.kind}")

    stats = request.app.state.pipelines.ingestion().ingest(raw_input)
    return IngestResponse(stats=stats)


@router.post("/query", response_model=QueryResponse)
def query(body: QueryRequest, request: Request):
    """Answer a question from the stored documents."""
    logger.info("Query request received")

    result = request.app.state.pipelines.retrieval().query(body.query)
    return QueryResponse(
        answer=result.answer,
        chunksRetrieved=result.chunksRetrieved,
        sources=result.sources,
        debug=result.debug,
    )


@router.get("/health")
def health(request: Request):
    return {"status": "ok", "collection": request.app.state.pipelines.collection}
