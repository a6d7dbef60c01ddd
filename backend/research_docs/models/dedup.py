"""Duplicate detection domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class MatchType(str, Enum):
    """Why a stored document was considered similar."""

    exact = "exact"
    version = "version"
    similar_content = "similar_content"
    similar_name = "similar_name"


class Recommendation(str, Enum):
    """Action recommended to the uploader."""

    block_upload = "block-upload"
    offer_replace = "offer-replace"
    allow = "allow"


class DuplicateMatch(BaseModel):
    """A stored completed document scored against an upload."""

    document_id: UUID
    filename: str
    original_name: str
    similarity: int = Field(..., ge=0, le=100)
    match_type: MatchType
    upload_date: datetime
    file_size: int
    name_exact: bool = False
    content_identical: bool = False


class SimilarityVerdict(BaseModel):
    """Outcome of a duplicate check. Transient, never persisted."""

    is_duplicate: bool
    confidence: int = Field(..., ge=0, le=100)
    matches: list[DuplicateMatch] = Field(default_factory=list)
    recommendation: Recommendation
