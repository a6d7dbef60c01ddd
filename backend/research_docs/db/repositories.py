"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from backend.research_docs.db.context import RequestContext


class StoreUnavailableError(Exception):
    """The document store could not be reached or rejected the request.

    Retryable. Callers must propagate it instead of treating it as an empty
    result.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"Document store {operation} failed: {reason}")
        self.operation = operation
        self.reason = reason


class DocumentNotFoundError(Exception):
    """Document does not exist (or not in the expected project)."""

    def __init__(self, document_id: UUID) -> None:
        super().__init__(f"Document {document_id} not found")
        self.document_id = document_id


class DocumentConflictError(Exception):
    """Insert or update violated the one-completed-row-per-name constraint."""

    def __init__(self, project_id: UUID, original_name: str) -> None:
        super().__init__(
            f"Project {project_id} already has a completed document named {original_name!r}"
        )
        self.project_id = project_id
        self.original_name = original_name


class UploadStatus(str, Enum):
    """Document upload status."""

    pending = "pending"
    completed = "completed"
    failed = "failed"


@dataclass
class DocumentRecord:
    """Stored document snapshot."""

    document_id: UUID
    project_id: UUID
    user_id: UUID
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    extracted_text: str | None
    upload_status: UploadStatus
    created_at: datetime
    updated_at: datetime
    storage_path: str | None = None


@dataclass
class NewDocument:
    """Payload for inserting a document row."""

    project_id: UUID
    user_id: UUID
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    extracted_text: str | None = None
    storage_path: str | None = None
    upload_status: UploadStatus = UploadStatus.completed


class DocumentStore(Protocol):
    """Document store capability.

    All methods raise StoreUnavailableError when the backing store fails.
    """

    async def list_completed(self, project_id: UUID) -> list[DocumentRecord]:
        """List completed documents for a project.

        Args:
            project_id: Project ID

        Returns:
            Completed documents, newest first
        """
        ...

    async def list_for_project(self, project_id: UUID) -> list[DocumentRecord]:
        """List every document of a project regardless of status, newest first."""
        ...

    async def get(self, document_id: UUID) -> DocumentRecord:
        """Get document by ID.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        ...

    async def insert(self, document: NewDocument) -> DocumentRecord:
        """Insert a new document.

        Raises:
            DocumentConflictError: If a completed document with the same
                original name already exists in the project
        """
        ...

    async def delete(self, document_id: UUID) -> None:
        """Delete a document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        ...

    async def update(self, document_id: UUID, fields: dict[str, Any]) -> DocumentRecord:
        """Update document fields and bump updated_at.

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentConflictError: If the update violates name uniqueness
        """
        ...


class ProjectDirectory(Protocol):
    """Project ownership lookup."""

    async def owns_project(self, project_id: UUID, ctx: RequestContext) -> bool:
        """Return True when the project exists and belongs to the caller."""
        ...
