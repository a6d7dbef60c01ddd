"""Dev seeding helper for stub authentication."""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.research_docs.api.auth import DEV_USER_ID
from backend.research_docs.db.engine import get_async_engine
from backend.research_docs.db.models import Project

# Fixed project id so local clients can hard-code it
DEV_PROJECT_ID = uuid.UUID("00000000-0000-0000-0000-000000000010")


async def seed_dev_project(engine: AsyncEngine | None = None) -> uuid.UUID:
    """Seed a project owned by the dev user.

    Idempotent - safe to run multiple times.

    Returns:
        DEV_PROJECT_ID
    """
    async with AsyncSession(engine or get_async_engine()) as session:
        result = await session.execute(
            select(Project).where(Project.project_id == DEV_PROJECT_ID)
        )
        project = result.scalar_one_or_none()

        if not project:
            print(f"Creating dev project with id {DEV_PROJECT_ID}...")
            session.add(
                Project(project_id=DEV_PROJECT_ID, user_id=DEV_USER_ID, title="Dev Project")
            )
        else:
            print(f"Dev project already exists: {project.title}")

        await session.commit()
        print("Dev seeding complete")

    return DEV_PROJECT_ID


if __name__ == "__main__":
    asyncio.run(seed_dev_project())
