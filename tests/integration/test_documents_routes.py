"""Integration tests for document API routes.

Routes run against in-memory stores through dependency overrides, driven
by httpx over ASGI.
"""

import uuid
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backend.research_docs.api.auth import DEV_USER_ID
from backend.research_docs.api.routes.documents import get_document_store, get_project_directory
from backend.research_docs.config import Settings, get_settings
from backend.research_docs.db.inmemory import InMemoryDocumentStore, InMemoryProjectDirectory
from backend.research_docs.db.repositories import (
    DocumentRecord,
    NewDocument,
    StoreUnavailableError,
)
from backend.research_docs.main import app

PROJECT_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_PROJECT_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")

RecordFactory = Callable[..., DocumentRecord]


class UnavailableStore(InMemoryDocumentStore):
    async def list_completed(self, project_id: uuid.UUID) -> list[DocumentRecord]:
        raise StoreUnavailableError("list_completed", "connection refused")


class InsertFailingStore(InMemoryDocumentStore):
    async def insert(self, document: NewDocument) -> DocumentRecord:
        raise StoreUnavailableError("insert", "connection reset")


class GetUnavailableStore(InMemoryDocumentStore):
    async def get(self, document_id: uuid.UUID) -> DocumentRecord:
        raise StoreUnavailableError("get", "connection refused")


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest_asyncio.fixture
async def client(
    store: InMemoryDocumentStore, settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the dev user owning PROJECT_ID."""
    directory = InMemoryProjectDirectory()
    directory.add_project(PROJECT_ID, DEV_USER_ID)
    directory.add_project(OTHER_PROJECT_ID, uuid.uuid4())

    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_project_directory] = lambda: directory
    app.dependency_overrides[get_settings] = lambda: settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def upload(
    name: str = "paper.pdf", content: bytes = b"%PDF-1.7", mime_type: str = "application/pdf"
) -> dict[str, Any]:
    return {"file": (name, content, mime_type)}


async def seed(
    store: InMemoryDocumentStore, make_record: RecordFactory, *args: Any, **kwargs: Any
) -> DocumentRecord:
    record = make_record(*args, **kwargs)
    store.add_record(record)
    return record


class TestCheckDuplicates:
    """Test POST /documents/check-duplicates."""

    @pytest.mark.asyncio
    async def test_exact_duplicate_blocks_upload(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        stored = await seed(store, make_record, "paper.pdf", "ABC")

        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID), "extractedText": "ABC"},
            files=upload(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["isDuplicate"] is True
        assert data["confidence"] == 100
        assert data["recommendation"] == "block-upload"
        assert data["matches"][0]["id"] == str(stored.document_id)
        assert data["matches"][0]["matchType"] == "exact"
        assert data["matches"][0]["originalName"] == "paper.pdf"
        assert "Duplicate detected" in data["message"]
        assert "timestamp" in data

    @pytest.mark.asyncio
    async def test_unrelated_upload_allowed(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        await seed(store, make_record, "paper.pdf", "ABC")

        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID), "extractedText": "XYZ"},
            files=upload("other.pdf"),
        )

        data = response.json()
        assert data["isDuplicate"] is False
        assert data["recommendation"] == "allow"
        assert data["matches"] == []
        assert data["message"] == ""

    @pytest.mark.asyncio
    async def test_text_upload_decoded_when_no_text_sent(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        await seed(store, make_record, "notes.txt", "Meeting notes")

        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID)},
            files=upload("notes.txt", b"meeting NOTES", "text/plain"),
        )

        assert response.json()["recommendation"] == "block-upload"

    @pytest.mark.asyncio
    async def test_missing_project_id_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/documents/check-duplicates", files=upload())

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_malformed_project_id_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/documents/check-duplicates", data={"projectId": "nope"}, files=upload()
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_foreign_project_not_found(self, client: AsyncClient) -> None:
        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(OTHER_PROJECT_ID)},
            files=upload(),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_user_cannot_check_project(self, client: AsyncClient) -> None:
        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID)},
            files=upload(),
            headers={"Authorization": f"Bearer {uuid.uuid4()}"},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_oversize_upload_rejected(self, client: AsyncClient, settings: Settings) -> None:
        settings.max_upload_bytes = 4

        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID)},
            files=upload(content=b"0123456789"),
        )

        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_upload_at_size_limit_accepted(self, client: AsyncClient, settings: Settings) -> None:
        settings.max_upload_bytes = 10

        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID)},
            files=upload(content=b"0123456789"),
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store", [UnavailableStore()])
    async def test_store_failure_is_retryable_503(
        self, client: AsyncClient, store: InMemoryDocumentStore
    ) -> None:
        response = await client.post(
            "/documents/check-duplicates",
            data={"projectId": str(PROJECT_ID)},
            files=upload(),
        )

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "5"
        assert response.json() == {
            "error": "store_unavailable",
            "operation": "list_completed",
            "retryable": True,
        }


class TestReplace:
    """Test POST /documents/replace."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", ["delete_first", "supersede"])
    async def test_replace_swaps_document(
        self,
        client: AsyncClient,
        store: InMemoryDocumentStore,
        settings: Settings,
        make_record: RecordFactory,
        strategy: str,
    ) -> None:
        settings.dedup_replace_strategy = strategy  # type: ignore[assignment]
        existing = await seed(store, make_record, "paper.pdf", "ABC")

        response = await client.post(
            "/documents/replace",
            data={
                "projectId": str(PROJECT_ID),
                "existingDocumentId": str(existing.document_id),
                "extractedText": "ABC revised",
            },
            files=upload(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["outcome"] == "replaced"
        assert data["existingDocumentId"] == str(existing.document_id)
        completed = await store.list_completed(PROJECT_ID)
        assert [str(r.document_id) for r in completed] == [data["newDocumentId"]]
        assert completed[0].extracted_text == "ABC revised"

    @pytest.mark.asyncio
    async def test_replace_document_outside_project_conflicts(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        foreign = await seed(store, make_record, "paper.pdf", "ABC", project_id=OTHER_PROJECT_ID)

        response = await client.post(
            "/documents/replace",
            data={"projectId": str(PROJECT_ID), "existingDocumentId": str(foreign.document_id)},
            files=upload(),
        )

        assert response.status_code == 409
        assert response.json()["outcome"] == "replace-failed"
        assert (await store.get(foreign.document_id)).project_id == OTHER_PROJECT_ID

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store", [InsertFailingStore()])
    async def test_replace_partial_is_server_error(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        existing = await seed(store, make_record, "paper.pdf", "ABC")

        response = await client.post(
            "/documents/replace",
            data={"projectId": str(PROJECT_ID), "existingDocumentId": str(existing.document_id)},
            files=upload(),
        )

        assert response.status_code == 500
        data = response.json()
        assert data["outcome"] == "replace-partial"
        assert data["success"] is False
        assert data["projectId"] == str(PROJECT_ID)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store", [GetUnavailableStore()])
    async def test_replace_store_outage_is_retryable_503(
        self, client: AsyncClient, store: InMemoryDocumentStore
    ) -> None:
        response = await client.post(
            "/documents/replace",
            data={"projectId": str(PROJECT_ID), "existingDocumentId": str(uuid.uuid4())},
            files=upload(),
        )

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "5"
        data = response.json()
        assert data["outcome"] == "replace-failed"
        assert data["retryable"] is True
        assert data["success"] is False

    @pytest.mark.asyncio
    async def test_replace_onto_taken_name_conflicts(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        draft = await seed(store, make_record, "draft.pdf", "draft")
        await seed(store, make_record, "paper.pdf", "paper")

        response = await client.post(
            "/documents/replace",
            data={"projectId": str(PROJECT_ID), "existingDocumentId": str(draft.document_id)},
            files=upload("paper.pdf"),
        )

        assert response.status_code == 409
        data = response.json()
        assert data["outcome"] == "replace-failed"
        assert data["retryable"] is False
        names = sorted(r.original_name for r in await store.list_completed(PROJECT_ID))
        assert names == ["draft.pdf", "paper.pdf"]


class TestUploadListSearchDelete:
    """Test document CRUD endpoints."""

    @pytest.mark.asyncio
    async def test_upload_creates_document(self, client: AsyncClient) -> None:
        response = await client.post(
            "/documents",
            data={"projectId": str(PROJECT_ID), "extractedText": "ABC"},
            files=upload(),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["originalName"] == "paper.pdf"
        assert data["uploadStatus"] == "completed"
        assert data["fileSize"] == len(b"%PDF-1.7")
        assert data["filename"].endswith("_paper.pdf")

    @pytest.mark.asyncio
    async def test_upload_same_name_conflicts(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        await seed(store, make_record, "paper.pdf", "ABC")

        response = await client.post(
            "/documents", data={"projectId": str(PROJECT_ID)}, files=upload()
        )

        assert response.status_code == 409
        assert response.json()["error"] == "document_conflict"

    @pytest.mark.asyncio
    async def test_upload_with_new_name_keeps_both(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        await seed(store, make_record, "paper.pdf", "ABC")

        response = await client.post(
            "/documents",
            data={"projectId": str(PROJECT_ID), "newName": "paper (2).pdf"},
            files=upload(),
        )

        assert response.status_code == 201
        names = sorted(r.original_name for r in await store.list_completed(PROJECT_ID))
        assert names == ["paper (2).pdf", "paper.pdf"]

    @pytest.mark.asyncio
    async def test_list_documents_newest_first(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        older = await seed(store, make_record, "a.pdf", age_minutes=10)
        newer = await seed(store, make_record, "b.pdf", age_minutes=1)

        response = await client.get("/documents", params={"projectId": str(PROJECT_ID)})

        assert response.status_code == 200
        ids = [d["id"] for d in response.json()["documents"]]
        assert ids == [str(newer.document_id), str(older.document_id)]

    @pytest.mark.asyncio
    async def test_search_documents(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        hit = await seed(store, make_record, "climate.pdf", "ocean warming")
        await seed(store, make_record, "budget.xlsx", "costs")

        response = await client.get(
            "/documents/search", params={"projectId": str(PROJECT_ID), "query": "ocean"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "ocean"
        assert [m["document"]["id"] for m in data["matches"]] == [str(hit.document_id)]
        assert data["matches"][0]["score"] == 1.0

    @pytest.mark.asyncio
    async def test_delete_document(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        record = await seed(store, make_record, "paper.pdf")

        response = await client.delete(
            f"/documents/{record.document_id}", params={"projectId": str(PROJECT_ID)}
        )

        assert response.status_code == 204
        assert await store.list_for_project(PROJECT_ID) == []

    @pytest.mark.asyncio
    async def test_delete_unknown_document_not_found(self, client: AsyncClient) -> None:
        response = await client.delete(
            f"/documents/{uuid.uuid4()}", params={"projectId": str(PROJECT_ID)}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "document_not_found"

    @pytest.mark.asyncio
    async def test_delete_rejects_document_from_other_project(
        self, client: AsyncClient, store: InMemoryDocumentStore, make_record: RecordFactory
    ) -> None:
        foreign = await seed(store, make_record, "paper.pdf", project_id=OTHER_PROJECT_ID)

        response = await client.delete(
            f"/documents/{foreign.document_id}", params={"projectId": str(PROJECT_ID)}
        )

        assert response.status_code == 404
        assert len(await store.list_for_project(OTHER_PROJECT_ID)) == 1
