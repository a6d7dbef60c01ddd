"""Structured logging for duplicate checks and replacements."""

import logging
from typing import Any
from uuid import UUID

from backend.research_docs.dedup.replacement import ReplaceOutcome, ReplaceResult
from backend.research_docs.models.dedup import SimilarityVerdict

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Apply the configured level to the package logger."""
    logging.getLogger("backend.research_docs").setLevel(level.upper())


class StructuredDocumentLogger:
    """Structured logger for document events."""

    def log_verdict(
        self,
        project_id: UUID,
        file_name: str,
        verdict: SimilarityVerdict,
        latency_ms: float,
    ) -> None:
        """Log a duplicate check verdict with structured data."""
        log_data: dict[str, Any] = {
            "project_id": str(project_id),
            "file_name": file_name,
            "is_duplicate": verdict.is_duplicate,
            "confidence": verdict.confidence,
            "match_count": len(verdict.matches),
            "recommendation": verdict.recommendation.value,
            "latency_ms": round(latency_ms, 2),
        }

        if verdict.matches:
            log_data["top_match_id"] = str(verdict.matches[0].document_id)

        logger.info(
            f"Duplicate check: {file_name} - {verdict.recommendation.value}",
            extra={"structured": log_data},
        )

    def log_replace(self, result: ReplaceResult, strategy: str) -> None:
        """Log a replacement result; partial outcomes carry reconciliation IDs."""
        log_data: dict[str, Any] = {
            "project_id": str(result.project_id),
            "old_document_id": str(result.existing_document_id),
            "new_document_id": str(result.new_document_id) if result.new_document_id else None,
            "outcome": result.outcome.value,
            "strategy": strategy,
        }

        if result.error:
            log_data["error_reason"] = result.error

        log_msg = f"Document replace: {result.existing_document_id} - {result.outcome.value}"

        if result.outcome == ReplaceOutcome.replaced:
            logger.info(log_msg, extra={"structured": log_data})
        elif result.outcome == ReplaceOutcome.failed:
            logger.warning(log_msg, extra={"structured": log_data})
        else:
            logger.error(log_msg, extra={"structured": log_data})
