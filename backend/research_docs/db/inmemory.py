"""In-memory implementations of repository interfaces."""

import dataclasses
import uuid
from datetime import datetime, timezone
from typing import Any

from backend.research_docs.db.context import RequestContext
from backend.research_docs.db.repositories import (
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentRecord,
    NewDocument,
    UploadStatus,
)


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStore.

    Mirrors the SQL store, including the one-completed-row-per-name rule.
    Records are copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self, records: list[DocumentRecord] | None = None) -> None:
        self._records: dict[uuid.UUID, DocumentRecord] = {}
        for record in records or []:
            self.add_record(record)

    def add_record(self, record: DocumentRecord) -> None:
        """Store a snapshot as-is, without the uniqueness check."""
        self._records[record.document_id] = dataclasses.replace(record)

    async def list_completed(self, project_id: uuid.UUID) -> list[DocumentRecord]:
        """List completed documents for a project."""
        return [
            record
            for record in await self.list_for_project(project_id)
            if record.upload_status == UploadStatus.completed
        ]

    async def list_for_project(self, project_id: uuid.UUID) -> list[DocumentRecord]:
        """List every document of a project."""
        records = [
            dataclasses.replace(record)
            for record in self._records.values()
            if record.project_id == project_id
        ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    async def get(self, document_id: uuid.UUID) -> DocumentRecord:
        """Get document by ID."""
        record = self._records.get(document_id)
        if record is None:
            raise DocumentNotFoundError(document_id)
        return dataclasses.replace(record)

    async def insert(self, document: NewDocument) -> DocumentRecord:
        """Insert a new document."""
        if document.upload_status == UploadStatus.completed:
            self._check_unique(document.project_id, document.original_name)

        now = datetime.now(timezone.utc)
        record = DocumentRecord(
            document_id=uuid.uuid4(),
            project_id=document.project_id,
            user_id=document.user_id,
            filename=document.filename,
            original_name=document.original_name,
            file_size=document.file_size,
            mime_type=document.mime_type,
            extracted_text=document.extracted_text,
            upload_status=document.upload_status,
            created_at=now,
            updated_at=now,
            storage_path=document.storage_path,
        )
        self._records[record.document_id] = record
        return dataclasses.replace(record)

    async def delete(self, document_id: uuid.UUID) -> None:
        """Delete a document."""
        if document_id not in self._records:
            raise DocumentNotFoundError(document_id)
        del self._records[document_id]

    async def update(self, document_id: uuid.UUID, fields: dict[str, Any]) -> DocumentRecord:
        """Update document fields."""
        record = self._records.get(document_id)
        if record is None:
            raise DocumentNotFoundError(document_id)

        changes = dict(fields)
        if "upload_status" in changes:
            changes["upload_status"] = UploadStatus(changes["upload_status"])
        updated = dataclasses.replace(record, **changes, updated_at=datetime.now(timezone.utc))

        if updated.upload_status == UploadStatus.completed:
            self._check_unique(updated.project_id, updated.original_name, exclude=document_id)

        self._records[document_id] = updated
        return dataclasses.replace(updated)

    def _check_unique(
        self, project_id: uuid.UUID, original_name: str, exclude: uuid.UUID | None = None
    ) -> None:
        for record in self._records.values():
            if (
                record.document_id != exclude
                and record.project_id == project_id
                and record.original_name == original_name
                and record.upload_status == UploadStatus.completed
            ):
                raise DocumentConflictError(project_id, original_name)


class InMemoryProjectDirectory:
    """In-memory implementation of ProjectDirectory."""

    def __init__(self) -> None:
        self._owners: dict[uuid.UUID, uuid.UUID] = {}

    def add_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Register a project owned by user_id."""
        self._owners[project_id] = user_id

    async def owns_project(self, project_id: uuid.UUID, ctx: RequestContext) -> bool:
        """Check project ownership."""
        return self._owners.get(project_id) == ctx.user_id
