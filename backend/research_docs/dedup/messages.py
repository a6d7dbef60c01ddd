"""User-facing text for duplicate check results."""

from backend.research_docs.models.dedup import MatchType, Recommendation, SimilarityVerdict

_MATCH_LINES = {
    MatchType.exact: 'Exact match found: "{name}" (uploaded {date}).',
    MatchType.version: 'Looks like another version of "{name}".',
    MatchType.similar_content: 'Content is very similar to "{name}".',
    MatchType.similar_name: 'Similar document found: "{name}".',
}

_RECOMMENDATION_LINES = {
    Recommendation.block_upload: "This file is already in the project. Upload skipped.",
    Recommendation.offer_replace: "You can replace the existing file or keep both.",
}


def build_duplicate_message(verdict: SimilarityVerdict) -> str:
    """Render a short markdown message for the upload dialog.

    Returns an empty string when there is nothing to warn about.
    """
    if verdict.recommendation == Recommendation.allow or not verdict.matches:
        return ""

    top = verdict.matches[0]
    heading = "Duplicate detected" if verdict.is_duplicate else "Possible duplicate"

    lines = [
        f"**{heading}** ({verdict.confidence}% similarity)",
        "",
        _MATCH_LINES[top.match_type].format(
            name=top.original_name, date=top.upload_date.date().isoformat()
        ),
    ]
    if len(verdict.matches) > 1:
        lines.append(f"{len(verdict.matches) - 1} other similar document(s) in this project.")

    lines.extend(["", _RECOMMENDATION_LINES[verdict.recommendation]])
    return "\n".join(lines)
