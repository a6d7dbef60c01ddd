"""Replacement executor - swap a stored document for a new upload.

Two strategies, both scoped to one project:

- ``delete_first``: delete old, insert new as completed. A crash between
  the two steps leaves the project without the document; that state is
  reported as ``replace-partial``.
- ``supersede``: insert new as pending, delete old, mark new completed. The
  project keeps a row for the document at every step.

Either way the executor checks that exactly one completed document with the
new name remains before reporting success. Store exceptions never escape;
every path ends in a ReplaceResult. Failures caused by an unavailable store
before anything changed are flagged ``retryable``.
"""

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Literal
from uuid import UUID

from backend.research_docs.db.repositories import (
    DocumentNotFoundError,
    DocumentRecord,
    DocumentStore,
    NewDocument,
    StoreUnavailableError,
    UploadStatus,
)

logger = logging.getLogger(__name__)

ReplaceStrategy = Literal["delete_first", "supersede"]


class ReplaceOutcome(str, Enum):
    """Outcome of a replacement attempt."""

    replaced = "replaced"
    failed = "replace-failed"  # nothing changed, original intact
    partial = "replace-partial"  # old removed, new not persisted as completed
    unverified = "replace-unverified"  # writes done, post-condition check failed


@dataclass
class ReplaceResult:
    """Result of a replacement, with identifiers for reconciliation."""

    outcome: ReplaceOutcome
    project_id: UUID
    existing_document_id: UUID
    new_document_id: UUID | None = None
    error: str | None = None
    retryable: bool = False  # store unavailable, nothing changed

    @property
    def success(self) -> bool:
        return self.outcome == ReplaceOutcome.replaced


# Metrics interface (implemented in utils.metrics)
class ReplacementMetrics:
    """Interface for replacement metrics."""

    def inc_replacement(self, outcome: str) -> None:
        """Increment replacement outcome counter."""
        pass


# Logging interface (implemented in utils.logging)
class ReplacementLogger:
    """Interface for structured replacement logging."""

    def log_replace(self, result: ReplaceResult, strategy: str) -> None:
        """Log a replacement result."""
        pass


class ReplacementExecutor:
    """Replaces an existing document with a new upload."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        strategy: ReplaceStrategy = "delete_first",
        metrics: ReplacementMetrics | None = None,
        event_logger: ReplacementLogger | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            store: Document store
            strategy: "delete_first" or "supersede"
            metrics: Metrics recorder (optional, defaults to no-op)
            event_logger: Structured logger (optional, defaults to no-op)
        """
        if strategy not in ("delete_first", "supersede"):
            raise ValueError(f"Unknown replace strategy: {strategy}")

        self._store = store
        self._strategy = strategy
        self._metrics = metrics or ReplacementMetrics()
        self._event_logger = event_logger or ReplacementLogger()

    async def replace(
        self,
        project_id: UUID,
        existing_document_id: UUID,
        new_document: NewDocument,
    ) -> ReplaceResult:
        """Replace existing_document_id with new_document inside project_id.

        Args:
            project_id: Project both documents belong to
            existing_document_id: Document to remove
            new_document: Upload to store; its project_id is forced to project_id

        Returns:
            ReplaceResult; success only after the post-condition check passed
        """
        result = await self._run(project_id, existing_document_id, new_document)

        self._metrics.inc_replacement(result.outcome.value)
        self._event_logger.log_replace(result, self._strategy)
        return result

    async def _run(
        self,
        project_id: UUID,
        existing_document_id: UUID,
        new_document: NewDocument,
    ) -> ReplaceResult:
        def failed(error: str, cause: Exception | None = None) -> ReplaceResult:
            return ReplaceResult(
                outcome=ReplaceOutcome.failed,
                project_id=project_id,
                existing_document_id=existing_document_id,
                error=error,
                retryable=isinstance(cause, StoreUnavailableError),
            )

        try:
            existing = await self._store.get(existing_document_id)
        except (DocumentNotFoundError, StoreUnavailableError) as e:
            logger.warning(f"Replace lookup failed for {existing_document_id}: {e}")
            return failed(f"lookup failed: {e}", e)

        if existing.project_id != project_id:
            return failed("document not found in project")

        payload = dataclasses.replace(new_document, project_id=project_id)

        # A different completed document already holding the new name would
        # make the insert fail after the original is gone.
        try:
            completed = await self._store.list_completed(project_id)
        except StoreUnavailableError as e:
            logger.warning(f"Replace pre-check failed for {existing_document_id}: {e}")
            return failed(f"pre-check failed: {e}", e)

        if any(
            r.original_name == payload.original_name and r.document_id != existing.document_id
            for r in completed
        ):
            return failed(f"another document is already named {payload.original_name!r}")

        if self._strategy == "supersede":
            return await self._supersede(existing, payload, failed)
        return await self._delete_first(existing, payload, failed)

    async def _delete_first(
        self,
        existing: DocumentRecord,
        payload: NewDocument,
        failed: Callable[..., ReplaceResult],
    ) -> ReplaceResult:
        try:
            await self._store.delete(existing.document_id)
        except Exception as e:
            logger.warning(f"Replace delete failed for {existing.document_id}: {e}")
            return failed(f"delete failed: {e}", e)

        try:
            inserted = await self._store.insert(
                dataclasses.replace(payload, upload_status=UploadStatus.completed)
            )
        except Exception as e:
            logger.error(
                f"Replace insert failed after delete of {existing.document_id}: {e}",
                exc_info=True,
            )
            return ReplaceResult(
                outcome=ReplaceOutcome.partial,
                project_id=existing.project_id,
                existing_document_id=existing.document_id,
                error=f"insert failed after delete: {e}",
            )

        return await self._verify(existing, inserted)

    async def _supersede(
        self,
        existing: DocumentRecord,
        payload: NewDocument,
        failed: Callable[..., ReplaceResult],
    ) -> ReplaceResult:
        try:
            pending = await self._store.insert(
                dataclasses.replace(payload, upload_status=UploadStatus.pending)
            )
        except Exception as e:
            logger.warning(f"Replace insert failed for {existing.document_id}: {e}")
            return failed(f"insert failed: {e}", e)

        try:
            await self._store.delete(existing.document_id)
        except Exception as e:
            logger.warning(f"Replace delete failed for {existing.document_id}: {e}")
            try:
                await self._store.delete(pending.document_id)
            except Exception as cleanup_error:
                logger.error(
                    f"Could not remove pending replacement {pending.document_id}: {cleanup_error}"
                )
            return failed(f"delete failed: {e}", e)

        try:
            completed = await self._store.update(
                pending.document_id, {"upload_status": UploadStatus.completed}
            )
        except Exception as e:
            logger.error(
                f"Replace could not complete {pending.document_id} after delete of "
                f"{existing.document_id}: {e}",
                exc_info=True,
            )
            return ReplaceResult(
                outcome=ReplaceOutcome.partial,
                project_id=existing.project_id,
                existing_document_id=existing.document_id,
                new_document_id=pending.document_id,
                error=f"status update failed after delete: {e}",
            )

        return await self._verify(existing, completed)

    async def _verify(self, existing: DocumentRecord, inserted: DocumentRecord) -> ReplaceResult:
        result = ReplaceResult(
            outcome=ReplaceOutcome.replaced,
            project_id=existing.project_id,
            existing_document_id=existing.document_id,
            new_document_id=inserted.document_id,
        )

        try:
            completed = await self._store.list_completed(existing.project_id)
        except Exception as e:
            result.outcome = ReplaceOutcome.unverified
            result.error = f"verification failed: {e}"
            return result

        same_name = [r for r in completed if r.original_name == inserted.original_name]
        if len(same_name) != 1 or same_name[0].document_id != inserted.document_id:
            result.outcome = ReplaceOutcome.unverified
            result.error = (
                f"expected one completed {inserted.original_name!r}, found {len(same_name)}"
            )

        return result
