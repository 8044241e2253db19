"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tb_mentor.config import settings
from tb_mentor.errors import RagError
from tb_mentor.models.query import ErrorResponse, QueryRequest, QueryResponse
from tb_mentor.service import RagQueryService

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="TB Clinical Mentor",
    description="Tuberculosis guideline retrieval API",
    version="1.2.1",
)

service = RagQueryService()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {str(error.get("loc", ("", ""))[-1]) for error in exc.errors()}
    if "question" in fields:
        return _error(400, "Missing or empty 'question' string in request body.")
    return _error(400, f"Invalid request body: {exc.errors()}")


@app.exception_handler(RagError)
async def handle_rag_error(request: Request, exc: RagError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Query failed: %s", exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected failure while answering query")
    return _error(500, str(exc) or exc.__class__.__name__)


@app.get("/health")
def health() -> dict[str, str]:
    """Simple readiness probe."""
    return {"status": "ok"}


@app.post(
    "/api/tb-rag-query",
    response_model=QueryResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def tb_rag_query(payload: QueryRequest) -> QueryResponse:
    """Return the guideline passages most similar to a clinician question."""
    return await service.query(payload)
