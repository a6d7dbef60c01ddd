"""Shared pytest fixtures for all test suites."""

import os
import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from backend.research_docs.db.models import Base
from backend.research_docs.db.repositories import DocumentRecord, UploadStatus

PROJECT_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_record() -> Callable[..., DocumentRecord]:
    """Factory for stored document snapshots.

    Usage:
        record = make_record("paper.pdf", "ABC", age_minutes=5)
    """

    def _make(
        original_name: str,
        extracted_text: str | None = None,
        *,
        project_id: uuid.UUID = PROJECT_ID,
        status: UploadStatus = UploadStatus.completed,
        age_minutes: int = 0,
        file_size: int = 1024,
    ) -> DocumentRecord:
        created_at = BASE_TIME - timedelta(minutes=age_minutes)
        return DocumentRecord(
            document_id=uuid.uuid4(),
            project_id=project_id,
            user_id=USER_ID,
            filename=f"{uuid.uuid4().hex}_{original_name}",
            original_name=original_name,
            file_size=file_size,
            mime_type="application/pdf",
            extracted_text=extracted_text,
            upload_status=status,
            created_at=created_at,
            updated_at=created_at,
        )

    return _make


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created.

    StaticPool keeps a single connection so every session sees the schema.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def postgres_session(postgres_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Async session for PostgreSQL integration tests."""
    async with AsyncSession(postgres_engine, expire_on_commit=False) as session:
        yield session
        await session.rollback()
