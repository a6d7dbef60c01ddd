"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates:
- project (ownership boundary, one user per project)
- project_document (uploaded files and their extracted text)
- uq_document_project_name_completed: at most one completed row per
  (project_id, original_name)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create project and project_document tables."""
    # project table
    op.create_table(
        "project",
        sa.Column("project_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("idx_project_user", "project", ["user_id", "created_at"])

    # project_document table
    op.create_table(
        "project_document",
        sa.Column("document_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("original_name", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("mime_type", sa.Text(), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=True),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("upload_status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.project_id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "upload_status IN ('pending', 'completed', 'failed')",
            name="ck_document_upload_status",
        ),
    )
    op.create_index(
        "idx_document_project_status",
        "project_document",
        ["project_id", "upload_status", "created_at"],
    )
    op.create_index(
        "uq_document_project_name_completed",
        "project_document",
        ["project_id", "original_name"],
        unique=True,
        postgresql_where=sa.text("upload_status = 'completed'"),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("uq_document_project_name_completed", table_name="project_document")
    op.drop_index("idx_document_project_status", table_name="project_document")
    op.drop_table("project_document")
    op.drop_index("idx_project_user", table_name="project")
    op.drop_table("project")
