"""SQL implementations of repository interfaces."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.research_docs.db.context import RequestContext
from backend.research_docs.db.models import Project, ProjectDocument
from backend.research_docs.db.queries import query_project_documents, query_projects
from backend.research_docs.db.repositories import (
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentRecord,
    NewDocument,
    StoreUnavailableError,
    UploadStatus,
)

logger = logging.getLogger(__name__)

# Columns callers may change through update()
_UPDATABLE_FIELDS = frozenset(
    {
        "filename",
        "original_name",
        "file_size",
        "mime_type",
        "storage_path",
        "extracted_text",
        "upload_status",
    }
)


def _to_record(row: ProjectDocument) -> DocumentRecord:
    return DocumentRecord(
        document_id=row.document_id,
        project_id=row.project_id,
        user_id=row.user_id,
        filename=row.filename,
        original_name=row.original_name,
        file_size=row.file_size,
        mime_type=row.mime_type,
        extracted_text=row.extracted_text,
        upload_status=UploadStatus(row.upload_status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        storage_path=row.storage_path,
    )


class SqlDocumentStore:
    """SQL implementation of DocumentStore."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_completed(self, project_id: uuid.UUID) -> list[DocumentRecord]:
        """List completed documents for a project."""
        stmt = query_project_documents(project_id).where(
            ProjectDocument.upload_status == UploadStatus.completed.value
        )
        try:
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreUnavailableError("list_completed", type(e).__name__) from e

        return [_to_record(row) for row in rows]

    async def list_for_project(self, project_id: uuid.UUID) -> list[DocumentRecord]:
        """List every document of a project."""
        try:
            result = await self._session.execute(query_project_documents(project_id))
            rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreUnavailableError("list_for_project", type(e).__name__) from e

        return [_to_record(row) for row in rows]

    async def get(self, document_id: uuid.UUID) -> DocumentRecord:
        """Get document by ID."""
        return _to_record(await self._load(document_id, "get"))

    async def insert(self, document: NewDocument) -> DocumentRecord:
        """Insert a new document."""
        now = datetime.now(timezone.utc)
        row = ProjectDocument(
            document_id=uuid.uuid4(),
            project_id=document.project_id,
            user_id=document.user_id,
            filename=document.filename,
            original_name=document.original_name,
            file_size=document.file_size,
            mime_type=document.mime_type,
            storage_path=document.storage_path,
            extracted_text=document.extracted_text,
            upload_status=document.upload_status.value,
            created_at=now,
            updated_at=now,
        )
        self._session.add(row)

        await self._commit("insert", document.project_id, document.original_name)
        await self._session.refresh(row)
        return _to_record(row)

    async def delete(self, document_id: uuid.UUID) -> None:
        """Delete a document."""
        row = await self._load(document_id, "delete")
        await self._session.delete(row)
        await self._commit("delete", row.project_id, row.original_name)

    async def update(self, document_id: uuid.UUID, fields: dict[str, Any]) -> DocumentRecord:
        """Update document fields."""
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        row = await self._load(document_id, "update")
        for name, value in fields.items():
            if isinstance(value, UploadStatus):
                value = value.value
            setattr(row, name, value)
        row.updated_at = datetime.now(timezone.utc)

        await self._commit("update", row.project_id, row.original_name)
        await self._session.refresh(row)
        return _to_record(row)

    async def _load(self, document_id: uuid.UUID, operation: str) -> ProjectDocument:
        try:
            row = await self._session.get(ProjectDocument, document_id)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(operation, type(e).__name__) from e

        if row is None:
            raise DocumentNotFoundError(document_id)
        return row

    async def _commit(self, operation: str, project_id: uuid.UUID, original_name: str) -> None:
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise DocumentConflictError(project_id, original_name) from e
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.warning(
                f"Document store {operation} failed",
                extra={"structured": {"operation": operation, "project_id": str(project_id)}},
            )
            raise StoreUnavailableError(operation, type(e).__name__) from e


class SqlProjectDirectory:
    """SQL implementation of ProjectDirectory."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def owns_project(self, project_id: uuid.UUID, ctx: RequestContext) -> bool:
        """Check project ownership."""
        stmt = query_projects(ctx).where(Project.project_id == project_id)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreUnavailableError("owns_project", type(e).__name__) from e

        return result.scalar_one_or_none() is not None
