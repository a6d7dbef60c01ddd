"""Reconciliation of duplicate completed documents.

Rows written before the partial unique index existed (or by a store without
it) can leave several completed documents sharing one original name. The
newest one is kept; the rest are reported and optionally deleted.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from backend.research_docs.db.repositories import DocumentRecord, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    """Completed documents of one project sharing an original name."""

    project_id: UUID
    original_name: str
    keep: DocumentRecord
    remove: list[DocumentRecord] = field(default_factory=list)


def plan_reconciliation(records: list[DocumentRecord]) -> list[DuplicateGroup]:
    """Group completed records by (project_id, original_name), newest kept."""
    by_key: dict[tuple[UUID, str], list[DocumentRecord]] = {}
    for record in records:
        by_key.setdefault((record.project_id, record.original_name), []).append(record)

    groups: list[DuplicateGroup] = []
    for (project_id, original_name), members in by_key.items():
        if len(members) < 2:
            continue
        members = sorted(members, key=lambda r: r.created_at, reverse=True)
        groups.append(
            DuplicateGroup(
                project_id=project_id,
                original_name=original_name,
                keep=members[0],
                remove=members[1:],
            )
        )

    groups.sort(key=lambda g: (str(g.project_id), g.original_name))
    return groups


async def reconcile_project(
    store: DocumentStore,
    project_id: UUID,
    *,
    apply: bool = False,
) -> list[DuplicateGroup]:
    """Find duplicate groups in a project and delete the extras when apply is set.

    Returns:
        The duplicate groups found (whether or not they were deleted)
    """
    groups = plan_reconciliation(await store.list_completed(project_id))

    for group in groups:
        logger.info(
            "Duplicate completed documents found",
            extra={
                "structured": {
                    "project_id": str(project_id),
                    "original_name": group.original_name,
                    "keep": str(group.keep.document_id),
                    "remove": [str(r.document_id) for r in group.remove],
                    "apply": apply,
                }
            },
        )
        if apply:
            for record in group.remove:
                await store.delete(record.document_id)

    return groups
