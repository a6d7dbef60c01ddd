"""Document endpoints - duplicate check, replace, upload, list, search, delete."""

import time
from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from backend.research_docs.api.auth import get_current_context
from backend.research_docs.config import Settings, get_settings
from backend.research_docs.db.context import RequestContext
from backend.research_docs.db.engine import get_session
from backend.research_docs.db.repositories import (
    DocumentNotFoundError,
    DocumentRecord,
    DocumentStore,
    ProjectDirectory,
)
from backend.research_docs.db.sql_repositories import SqlDocumentStore, SqlProjectDirectory
from backend.research_docs.dedup.messages import build_duplicate_message
from backend.research_docs.dedup.replacement import ReplaceOutcome, ReplacementExecutor
from backend.research_docs.dedup.resolver import DuplicateResolver, ScoringPolicy
from backend.research_docs.documents.extraction import resolve_upload_text
from backend.research_docs.documents.ingest import build_new_document, ingest_document
from backend.research_docs.documents.search import search_documents
from backend.research_docs.models.dedup import DuplicateMatch, MatchType, Recommendation
from backend.research_docs.utils.logging import StructuredDocumentLogger
from backend.research_docs.utils.metrics import PrometheusDocumentMetrics

router = APIRouter(prefix="/documents", tags=["documents"])

_metrics = PrometheusDocumentMetrics()
_event_logger = StructuredDocumentLogger()


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MatchResponse(CamelModel):
    """Single duplicate match."""

    id: UUID
    filename: str
    original_name: str
    similarity: int
    match_type: MatchType
    upload_date: datetime
    file_size: int

    @classmethod
    def from_match(cls, match: DuplicateMatch) -> "MatchResponse":
        return cls(
            id=match.document_id,
            filename=match.filename,
            original_name=match.original_name,
            similarity=match.similarity,
            match_type=match.match_type,
            upload_date=match.upload_date,
            file_size=match.file_size,
        )


class DuplicateCheckResponse(CamelModel):
    """Response for POST /documents/check-duplicates."""

    success: bool = True
    is_duplicate: bool
    confidence: int
    matches: list[MatchResponse]
    recommendation: Recommendation
    message: str
    timestamp: datetime


class ReplaceResponse(CamelModel):
    """Response for POST /documents/replace."""

    success: bool
    outcome: ReplaceOutcome
    project_id: UUID
    existing_document_id: UUID
    new_document_id: UUID | None = None
    error: str | None = None
    retryable: bool = False


class DocumentResponse(CamelModel):
    """Stored document metadata (without extracted text)."""

    id: UUID
    project_id: UUID
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    upload_status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "DocumentResponse":
        return cls(
            id=record.document_id,
            project_id=record.project_id,
            filename=record.filename,
            original_name=record.original_name,
            file_size=record.file_size,
            mime_type=record.mime_type,
            upload_status=record.upload_status.value,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DocumentListResponse(CamelModel):
    """Response for GET /documents."""

    documents: list[DocumentResponse]


class DocumentSearchResult(CamelModel):
    """Single search result with score."""

    document: DocumentResponse
    score: float


class DocumentSearchResponse(CamelModel):
    """Response for GET /documents/search."""

    matches: list[DocumentSearchResult]
    query: str


async def get_document_store(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DocumentStore:
    """FastAPI dependency for the document store."""
    return SqlDocumentStore(session)


async def get_project_directory(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ProjectDirectory:
    """FastAPI dependency for project ownership checks."""
    return SqlProjectDirectory(session)


def get_resolver(settings: Annotated[Settings, Depends(get_settings)]) -> DuplicateResolver:
    """FastAPI dependency for the duplicate resolver."""
    return DuplicateResolver(ScoringPolicy.from_settings(settings))


def _parse_id(raw: str | None, label: str) -> UUID:
    if raw is None or not raw.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Missing {label}"
        )
    try:
        return UUID(raw.strip())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}"
        ) from e


def _require_filename(file: UploadFile, override: str | None = None) -> str:
    name = (override or file.filename or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing file name")
    return name


async def _read_upload(file: UploadFile, settings: Settings) -> bytes:
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.max_upload_bytes} bytes",
        )
    return data


async def _require_project(
    project_id: UUID, ctx: RequestContext, directory: ProjectDirectory
) -> None:
    if not await directory.owns_project(project_id, ctx):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")


@router.post("/check-duplicates", response_model=DuplicateCheckResponse)
async def check_duplicates(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    directory: Annotated[ProjectDirectory, Depends(get_project_directory)],
    resolver: Annotated[DuplicateResolver, Depends(get_resolver)],
    settings: Annotated[Settings, Depends(get_settings)],
    project_id: Annotated[str, Form(alias="projectId")],
    file: Annotated[UploadFile, File()],
    extracted_text: Annotated[str | None, Form(alias="extractedText")] = None,
) -> DuplicateCheckResponse:
    """Check an upload against the project's completed documents.

    Args:
        ctx: Request context (user_id)
        store: Document store
        directory: Project ownership lookup
        resolver: Duplicate resolver configured from settings
        settings: Application settings
        project_id: Target project
        file: Uploaded file
        extracted_text: Text extracted by the client (optional)

    Returns:
        Verdict with matches, recommendation and a user-facing message
    """
    pid = _parse_id(project_id, "project id")
    file_name = _require_filename(file)
    data = await _read_upload(file, settings)

    await _require_project(pid, ctx, directory)

    text = resolve_upload_text(extracted_text, data, file.content_type or "", file_name)

    started = time.perf_counter()
    verdict = await resolver.check(store, pid, file_name, text, file_size=len(data))
    latency_ms = (time.perf_counter() - started) * 1000

    _metrics.record_check(verdict.recommendation.value, latency_ms)
    _event_logger.log_verdict(pid, file_name, verdict, latency_ms)

    return DuplicateCheckResponse(
        is_duplicate=verdict.is_duplicate,
        confidence=verdict.confidence,
        matches=[MatchResponse.from_match(m) for m in verdict.matches],
        recommendation=verdict.recommendation,
        message=build_duplicate_message(verdict),
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/replace", response_model=ReplaceResponse)
async def replace_document(
    response: Response,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    directory: Annotated[ProjectDirectory, Depends(get_project_directory)],
    settings: Annotated[Settings, Depends(get_settings)],
    project_id: Annotated[str, Form(alias="projectId")],
    existing_document_id: Annotated[str, Form(alias="existingDocumentId")],
    file: Annotated[UploadFile, File()],
    extracted_text: Annotated[str | None, Form(alias="extractedText")] = None,
) -> ReplaceResponse:
    """Replace an existing document with a new upload.

    Returns 200 when replaced, 409 when nothing changed (replace-failed),
    503 with Retry-After when the store was unavailable before any write,
    500 when the project was left needing reconciliation (replace-partial,
    replace-unverified).
    """
    pid = _parse_id(project_id, "project id")
    existing_id = _parse_id(existing_document_id, "existing document id")
    file_name = _require_filename(file)
    data = await _read_upload(file, settings)

    await _require_project(pid, ctx, directory)

    new_document = build_new_document(
        ctx=ctx,
        project_id=pid,
        original_name=file_name,
        file_size=len(data),
        mime_type=file.content_type or "",
        extracted_text=resolve_upload_text(
            extracted_text, data, file.content_type or "", file_name
        ),
    )

    executor = ReplacementExecutor(
        store,
        strategy=settings.dedup_replace_strategy,
        metrics=_metrics,
        event_logger=_event_logger,
    )
    result = await executor.replace(pid, existing_id, new_document)

    if result.retryable:
        _metrics.inc_store_error("replace")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        response.headers["Retry-After"] = str(settings.store_retry_after_seconds)
    elif result.outcome == ReplaceOutcome.failed:
        response.status_code = status.HTTP_409_CONFLICT
    elif not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return ReplaceResponse(
        success=result.success,
        outcome=result.outcome,
        project_id=result.project_id,
        existing_document_id=result.existing_document_id,
        new_document_id=result.new_document_id,
        error=result.error,
        retryable=result.retryable,
    )


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    directory: Annotated[ProjectDirectory, Depends(get_project_directory)],
    settings: Annotated[Settings, Depends(get_settings)],
    project_id: Annotated[str, Form(alias="projectId")],
    file: Annotated[UploadFile, File()],
    extracted_text: Annotated[str | None, Form(alias="extractedText")] = None,
    new_name: Annotated[str | None, Form(alias="newName")] = None,
) -> DocumentResponse:
    """Store an upload as a new completed document ("keep both" / "rename")."""
    pid = _parse_id(project_id, "project id")
    file_name = _require_filename(file, override=new_name)
    data = await _read_upload(file, settings)

    await _require_project(pid, ctx, directory)

    record = await ingest_document(
        store=store,
        ctx=ctx,
        project_id=pid,
        original_name=file_name,
        file_size=len(data),
        mime_type=file.content_type or "",
        extracted_text=resolve_upload_text(
            extracted_text, data, file.content_type or "", file.filename or file_name
        ),
    )
    return DocumentResponse.from_record(record)


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    directory: Annotated[ProjectDirectory, Depends(get_project_directory)],
    project_id: Annotated[str, Query(alias="projectId")],
) -> DocumentListResponse:
    """List all documents of a project, newest first."""
    pid = _parse_id(project_id, "project id")
    await _require_project(pid, ctx, directory)

    records = await store.list_for_project(pid)
    return DocumentListResponse(documents=[DocumentResponse.from_record(r) for r in records])


@router.get("/search", response_model=DocumentSearchResponse)
async def search_documents_endpoint(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    directory: Annotated[ProjectDirectory, Depends(get_project_directory)],
    project_id: Annotated[str, Query(alias="projectId")],
    query: Annotated[str, Query(min_length=1, max_length=200)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> DocumentSearchResponse:
    """Search a project's documents by name and extracted text."""
    pid = _parse_id(project_id, "project id")
    await _require_project(pid, ctx, directory)

    matches = await search_documents(store=store, project_id=pid, query=query, limit=limit)

    return DocumentSearchResponse(
        matches=[
            DocumentSearchResult(document=DocumentResponse.from_record(m.record), score=m.score)
            for m in matches
        ],
        query=query,
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    directory: Annotated[ProjectDirectory, Depends(get_project_directory)],
    project_id: Annotated[str, Query(alias="projectId")],
) -> Response:
    """Delete a document from a project."""
    pid = _parse_id(project_id, "project id")
    await _require_project(pid, ctx, directory)

    record = await store.get(document_id)
    if record.project_id != pid:
        raise DocumentNotFoundError(document_id)

    await store.delete(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
