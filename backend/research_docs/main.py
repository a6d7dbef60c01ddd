"""FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from backend.research_docs.api.routes.documents import router as documents_router
from backend.research_docs.api.routes.health import router as health_router
from backend.research_docs.api.routes.metrics import router as metrics_router
from backend.research_docs.config import get_settings
from backend.research_docs.db.repositories import (
    DocumentConflictError,
    DocumentNotFoundError,
    StoreUnavailableError,
)
from backend.research_docs.utils.logging import configure_logging
from backend.research_docs.utils.metrics import PrometheusDocumentMetrics

logger = logging.getLogger(__name__)

configure_logging(get_settings().log_level)

app = FastAPI(title="Research Documents API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(documents_router, tags=["documents"])

_metrics = PrometheusDocumentMetrics()


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Store failures are retryable server errors, never empty results."""
    _metrics.inc_store_error(exc.operation)
    logger.error(
        f"Document store unavailable during {exc.operation}",
        extra={
            "structured": {
                "operation": exc.operation,
                "reason": exc.reason,
                "path": request.url.path,
            }
        },
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "store_unavailable", "operation": exc.operation, "retryable": True},
        headers={"Retry-After": str(get_settings().store_retry_after_seconds)},
    )


@app.exception_handler(DocumentNotFoundError)
async def document_not_found_handler(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
    """Unknown document IDs map to 404."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "document_not_found", "documentId": str(exc.document_id)},
    )


@app.exception_handler(DocumentConflictError)
async def document_conflict_handler(request: Request, exc: DocumentConflictError) -> JSONResponse:
    """Uniqueness violations map to 409."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "document_conflict",
            "projectId": str(exc.project_id),
            "originalName": exc.original_name,
        },
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Research Documents API", "version": "0.1.0"}
