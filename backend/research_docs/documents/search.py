"""Project document search by query tokens."""

from dataclasses import dataclass
from uuid import UUID

from backend.research_docs.db.repositories import DocumentRecord, DocumentStore


@dataclass
class DocumentSearchMatch:
    """Document with relevance score."""

    record: DocumentRecord
    score: float


async def search_documents(
    *,
    store: DocumentStore,
    project_id: UUID,
    query: str,
    limit: int = 10,
) -> list[DocumentSearchMatch]:
    """Search a project's completed documents with simple token matching.

    Scoring strategy:
    - Tokenize query on spaces (lowercase)
    - For each document, count query tokens found in its original name or
      extracted text (case-insensitive substring match)
    - Filter out documents with score = 0
    - Sort by score descending, then newest first
    - Apply limit

    Args:
        store: Document store
        project_id: Project to search
        query: Search query string
        limit: Maximum number of results to return

    Returns:
        Matches sorted by relevance (descending score)
    """
    query_tokens = [token for token in query.lower().split() if token]
    if not query_tokens:
        return []

    records = await store.list_completed(project_id)

    matches: list[DocumentSearchMatch] = []
    for record in records:
        haystack = f"{record.original_name}\n{record.extracted_text or ''}".lower()
        match_count = sum(1 for token in query_tokens if token in haystack)
        if match_count > 0:
            matches.append(DocumentSearchMatch(record=record, score=float(match_count)))

    # Store returns newest first; stable sort keeps that order on ties
    matches.sort(key=lambda m: -m.score)

    return matches[:limit]
