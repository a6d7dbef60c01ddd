"""Unit tests for upload text extraction."""

import pytest

from backend.research_docs.documents.extraction import (
    extract_text,
    is_text_upload,
    resolve_upload_text,
)


@pytest.mark.parametrize(
    ("mime_type", "filename", "expected"),
    [
        ("text/plain", "notes", True),
        ("text/markdown; charset=utf-8", "notes", True),
        ("application/json", "data", True),
        ("application/octet-stream", "refs.bib", True),
        ("application/pdf", "paper.pdf", False),
        ("", "slides.pptx", False),
    ],
)
def test_is_text_upload(mime_type: str, filename: str, expected: bool) -> None:
    assert is_text_upload(mime_type, filename) is expected


def test_extract_text_decodes_utf8() -> None:
    assert extract_text("Résumé\n".encode(), "text/plain", "cv.txt") == "Résumé\n"


def test_extract_text_strips_control_characters() -> None:
    assert extract_text(b"ab\x00c\x07d\tz", "text/plain", "a.txt") == "abcd\tz"


def test_extract_text_binary_returns_none() -> None:
    assert extract_text(b"%PDF-1.7 ...", "application/pdf", "paper.pdf") is None


def test_extract_text_empty_returns_none() -> None:
    assert extract_text(b"", "text/plain", "a.txt") is None
    assert extract_text(b"  \n ", "text/plain", "a.txt") is None


def test_resolve_prefers_provided_text() -> None:
    assert resolve_upload_text("client text", b"file text", "text/plain", "a.txt") == "client text"


def test_resolve_falls_back_to_upload_when_provided_blank() -> None:
    assert resolve_upload_text("   ", b"file text", "text/plain", "a.txt") == "file text"
    assert resolve_upload_text(None, b"%PDF", "application/pdf", "a.pdf") is None
