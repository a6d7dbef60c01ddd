"""Document ingestion - build and persist upload rows."""

import re
from uuid import UUID, uuid4

from backend.research_docs.db.context import RequestContext
from backend.research_docs.db.repositories import (
    DocumentRecord,
    DocumentStore,
    NewDocument,
    UploadStatus,
)

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


def storage_filename(original_name: str) -> str:
    """Unique, filesystem-safe name for the stored object.

    Example: "My Paper (1).pdf" -> "3f2a...c1_My_Paper_1_.pdf"
    """
    safe = _UNSAFE_CHARS_RE.sub("_", original_name.strip()).strip("._") or "upload"
    return f"{uuid4().hex}_{safe}"


def build_new_document(
    *,
    ctx: RequestContext,
    project_id: UUID,
    original_name: str,
    file_size: int,
    mime_type: str,
    extracted_text: str | None,
) -> NewDocument:
    """Build the insert payload for an upload owned by the caller."""
    return NewDocument(
        project_id=project_id,
        user_id=ctx.user_id,
        filename=storage_filename(original_name),
        original_name=original_name.strip(),
        file_size=file_size,
        mime_type=mime_type or "application/octet-stream",
        extracted_text=extracted_text,
        upload_status=UploadStatus.completed,
    )


async def ingest_document(
    *,
    store: DocumentStore,
    ctx: RequestContext,
    project_id: UUID,
    original_name: str,
    file_size: int,
    mime_type: str,
    extracted_text: str | None,
) -> DocumentRecord:
    """Persist an upload as a new completed document.

    Used for "keep both" and "rename" choices after a duplicate check, and
    for uploads that were never flagged.

    Raises:
        DocumentConflictError: If a completed document with the same name
            already exists in the project
        StoreUnavailableError: If the store fails
    """
    document = build_new_document(
        ctx=ctx,
        project_id=project_id,
        original_name=original_name,
        file_size=file_size,
        mime_type=mime_type,
        extracted_text=extracted_text,
    )
    return await store.insert(document)
