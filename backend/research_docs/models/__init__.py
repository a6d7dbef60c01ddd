"""Models package - re-exports for convenience."""

from backend.research_docs.models.dedup import (
    DuplicateMatch,
    MatchType,
    Recommendation,
    SimilarityVerdict,
)

__all__ = [
    "DuplicateMatch",
    "MatchType",
    "Recommendation",
    "SimilarityVerdict",
]
