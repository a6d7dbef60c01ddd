"""Tenancy-safe query helpers."""

from uuid import UUID

from sqlalchemy import Select, select

from backend.research_docs.db.context import RequestContext
from backend.research_docs.db.models import Project, ProjectDocument


def query_projects(ctx: RequestContext) -> Select[tuple[Project]]:
    """Select projects with user scoping enforced.

    Args:
        ctx: Request context with user_id

    Returns:
        Select filtered by user_id
    """
    return select(Project).where(Project.user_id == ctx.user_id)


def query_project_documents(project_id: UUID) -> Select[tuple[ProjectDocument]]:
    """Select documents of one project, newest first.

    Callers are expected to have checked project ownership already.

    Args:
        project_id: Project ID

    Returns:
        Select filtered by project_id and ordered by created_at desc
    """
    return (
        select(ProjectDocument)
        .where(ProjectDocument.project_id == project_id)
        .order_by(ProjectDocument.created_at.desc())
    )
