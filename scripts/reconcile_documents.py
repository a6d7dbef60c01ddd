"""Report (and optionally remove) duplicate completed documents.

Usage:
    python -m scripts.reconcile_documents            # dry run
    python -m scripts.reconcile_documents --apply    # keep newest, delete rest
"""

import argparse
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.research_docs.config import get_settings
from backend.research_docs.db.engine import create_async_engine_from_settings
from backend.research_docs.db.models import Project
from backend.research_docs.db.sql_repositories import SqlDocumentStore
from backend.research_docs.documents.reconcile import reconcile_project
from backend.research_docs.utils.logging import configure_logging


async def run(apply: bool) -> int:
    """Reconcile every project; returns the number of duplicate groups found."""
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = create_async_engine_from_settings(settings)

    total = 0
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            project_ids = list((await session.execute(select(Project.project_id))).scalars())
            store = SqlDocumentStore(session)

            for project_id in project_ids:
                groups = await reconcile_project(store, project_id, apply=apply)
                for group in groups:
                    action = "deleted" if apply else "would delete"
                    print(
                        f"{project_id} {group.original_name!r}: keep {group.keep.document_id}, "
                        f"{action} {len(group.remove)}"
                    )
                total += len(groups)
    finally:
        await engine.dispose()

    print(f"{total} duplicate group(s) {'reconciled' if apply else 'found'}")
    return total


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Delete all but the newest completed document per name",
    )
    args = parser.parse_args()
    asyncio.run(run(args.apply))


if __name__ == "__main__":
    main()
