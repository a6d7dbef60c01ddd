"""Duplicate document resolver.

Scores an upload against the completed documents of its project and turns
the best score into a recommendation:

- confidence >= high threshold: duplicate. ``block-upload`` when the top
  match has the same name and identical text, otherwise ``offer-replace``.
- low threshold <= confidence < high threshold: ``offer-replace`` with
  ``is_duplicate`` false, leaving the decision to the user.
- below the low threshold: ``allow``.

Per-candidate score::

    round(name_weight * name_score + content_weight * content_score)

raised to ``identical_content_floor`` when the extracted texts have the same
fingerprint. Missing text on either side gives ``neutral_content_score``.
A renamed file with the same byte size and a name score above
``same_size_min_name_score`` gets ``same_size_name_score`` for its name.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from backend.research_docs.config import Settings
from backend.research_docs.db.repositories import DocumentRecord, DocumentStore, UploadStatus
from backend.research_docs.dedup.similarity import (
    content_fingerprint,
    is_version_of,
    name_similarity,
    paper_title_similarity,
    text_similarity,
)
from backend.research_docs.models.dedup import (
    DuplicateMatch,
    MatchType,
    Recommendation,
    SimilarityVerdict,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringPolicy:
    """Thresholds and weights for duplicate scoring."""

    high_threshold: int = 90
    low_threshold: int = 30
    name_weight: float = 0.5
    content_weight: float = 0.5
    neutral_content_score: int = 50
    identical_content_floor: int = 95
    content_sample_chars: int = 2000
    # Same byte size plus a name score above this lifts the name score
    same_size_min_name_score: int = 50
    same_size_name_score: int = 90

    def __post_init__(self) -> None:
        if not 0 <= self.low_threshold <= self.high_threshold <= 100:
            raise ValueError("Thresholds must satisfy 0 <= low <= high <= 100")
        if self.name_weight < 0 or self.content_weight < 0:
            raise ValueError("Weights must be non-negative")
        if self.name_weight + self.content_weight == 0:
            raise ValueError("At least one weight must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringPolicy":
        """Build policy from DEDUP_* settings."""
        return cls(
            high_threshold=settings.dedup_high_threshold,
            low_threshold=settings.dedup_low_threshold,
            name_weight=settings.dedup_name_weight,
            content_weight=settings.dedup_content_weight,
            neutral_content_score=settings.dedup_neutral_content_score,
            identical_content_floor=settings.dedup_identical_content_floor,
            content_sample_chars=settings.dedup_content_sample_chars,
        )


@dataclass(frozen=True)
class CandidateScore:
    """Score of one stored document against the upload."""

    record: DocumentRecord
    score: int
    match_type: MatchType
    name_exact: bool
    content_identical: bool


class DuplicateResolver:
    """Classifies uploads as duplicate, possible duplicate or unique."""

    def __init__(self, policy: ScoringPolicy | None = None) -> None:
        self.policy = policy or ScoringPolicy()

    async def check(
        self,
        store: DocumentStore,
        project_id: UUID,
        file_name: str,
        file_content: str | None,
        file_size: int | None = None,
    ) -> SimilarityVerdict:
        """Fetch the project's completed documents and resolve the upload.

        Store failures propagate (StoreUnavailableError); they are never
        reported as "no duplicates".

        Raises:
            ValueError: If file_name is blank (checked before any store access)
        """
        if not file_name or not file_name.strip():
            raise ValueError("file_name is required")

        candidates = await store.list_completed(project_id)
        verdict = self.resolve(file_name, file_content, candidates, file_size=file_size)

        logger.debug(
            f"Duplicate check for {file_name!r}: {len(candidates)} candidates, "
            f"confidence {verdict.confidence}",
        )
        return verdict

    def resolve(
        self,
        file_name: str,
        file_content: str | None,
        candidates: list[DocumentRecord],
        file_size: int | None = None,
    ) -> SimilarityVerdict:
        """Score an upload against a candidate snapshot.

        Pure: no I/O. Records that are not completed are ignored even if the
        caller passes them in.

        Args:
            file_name: Name of the uploaded file
            file_content: Extracted text of the upload (None or blank if unknown)
            candidates: Stored documents of the same project
            file_size: Byte size of the upload, if known

        Returns:
            SimilarityVerdict with matches at or above the low threshold,
            highest score first, newest first on ties
        """
        eligible = [c for c in candidates if c.upload_status == UploadStatus.completed]
        if not eligible:
            return SimilarityVerdict(
                is_duplicate=False,
                confidence=0,
                matches=[],
                recommendation=Recommendation.allow,
            )

        fingerprint = content_fingerprint(file_content)
        scored = [
            self.score_candidate(file_name, file_content, fingerprint, c, file_size=file_size)
            for c in eligible
        ]

        confidence = max(s.score for s in scored)

        above_low = [s for s in scored if s.score >= self.policy.low_threshold]
        # Two stable sorts: newest first, then highest score first
        above_low.sort(key=lambda s: s.record.created_at, reverse=True)
        above_low.sort(key=lambda s: s.score, reverse=True)

        matches = [
            DuplicateMatch(
                document_id=s.record.document_id,
                filename=s.record.filename,
                original_name=s.record.original_name,
                similarity=s.score,
                match_type=s.match_type,
                upload_date=s.record.created_at,
                file_size=s.record.file_size,
                name_exact=s.name_exact,
                content_identical=s.content_identical,
            )
            for s in above_low
        ]

        return SimilarityVerdict(
            is_duplicate=confidence >= self.policy.high_threshold,
            confidence=confidence,
            matches=matches,
            recommendation=self._recommend(confidence, above_low),
        )

    def score_candidate(
        self,
        file_name: str,
        file_content: str | None,
        fingerprint: str | None,
        record: DocumentRecord,
        file_size: int | None = None,
    ) -> CandidateScore:
        """Combine filename and content similarity for one stored document."""
        policy = self.policy

        name_exact = file_name.strip().lower() == record.original_name.strip().lower()
        if name_exact:
            name_score = 100
        else:
            name_score = max(
                name_similarity(file_name, record.original_name),
                paper_title_similarity(file_name, record.original_name),
            )
            if (
                file_size is not None
                and file_size == record.file_size
                and name_score > policy.same_size_min_name_score
            ):
                name_score = max(name_score, policy.same_size_name_score)

        record_fingerprint = content_fingerprint(record.extracted_text)
        content_known = fingerprint is not None and record_fingerprint is not None
        content_identical = content_known and fingerprint == record_fingerprint

        if not content_known:
            content_score = policy.neutral_content_score
        elif content_identical:
            content_score = 100
        else:
            content_score = text_similarity(
                file_content or "",
                record.extracted_text or "",
                sample_chars=policy.content_sample_chars,
            )

        total_weight = policy.name_weight + policy.content_weight
        score = round(
            (policy.name_weight * name_score + policy.content_weight * content_score)
            / total_weight
        )
        if content_identical:
            score = max(score, policy.identical_content_floor)
        score = min(max(score, 0), 100)

        if name_exact or content_identical:
            match_type = MatchType.exact
        elif is_version_of(file_name, record.original_name):
            match_type = MatchType.version
        elif content_known and content_score >= name_score:
            match_type = MatchType.similar_content
        else:
            match_type = MatchType.similar_name

        return CandidateScore(
            record=record,
            score=score,
            match_type=match_type,
            name_exact=name_exact,
            content_identical=content_identical,
        )

    def _recommend(self, confidence: int, matches: list[CandidateScore]) -> Recommendation:
        if confidence >= self.policy.high_threshold:
            top = matches[0]
            if top.name_exact and top.content_identical:
                return Recommendation.block_upload
            return Recommendation.offer_replace

        if confidence >= self.policy.low_threshold:
            return Recommendation.offer_replace

        return Recommendation.allow
