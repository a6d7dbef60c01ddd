"""Upload text extraction.

Only plain-text formats are decoded here. Binary formats (PDF, DOCX) are
expected to arrive with text already extracted by the client; without it
the duplicate check falls back to a neutral content score.
"""

import re

TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/x-tex",
        "application/x-bibtex",
    }
)
TEXT_EXTENSIONS = (".txt", ".md", ".csv", ".tex", ".bib", ".json", ".xml")

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def is_text_upload(mime_type: str, filename: str) -> bool:
    """True when the upload can be decoded as text."""
    base_type = mime_type.split(";", 1)[0].strip().lower()
    if base_type.startswith("text/") or base_type in TEXT_MIME_TYPES:
        return True
    return filename.lower().endswith(TEXT_EXTENSIONS)


def extract_text(data: bytes, mime_type: str, filename: str) -> str | None:
    """Decode a text upload as UTF-8.

    Returns:
        Text without control characters, or None for binary or empty uploads
    """
    if not data or not is_text_upload(mime_type, filename):
        return None

    text = _CONTROL_RE.sub("", data.decode("utf-8", errors="replace"))
    return text if text.strip() else None


def resolve_upload_text(
    provided_text: str | None, data: bytes, mime_type: str, filename: str
) -> str | None:
    """Prefer client-extracted text, else decode the upload itself."""
    if provided_text is not None and provided_text.strip():
        return provided_text
    return extract_text(data, mime_type, filename)
