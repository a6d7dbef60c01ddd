"""Filename and content similarity primitives.

Pure functions with no I/O. All scores are on a 0-100 scale unless the
name says otherwise.
"""

import hashlib
import re

_EXTENSION_RE = re.compile(r"\.(pdf|docx?|xlsx?|pptx?|txt|md|csv|png|jpe?g)$", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[_\-\s]+")
_YEAR_RE = re.compile(r"\b\d{4}\b")
_VERSION_RE = re.compile(r"\b(?:v\d+|version\s*\d+|rev\s*\d+)\b", re.IGNORECASE)
_VERSION_MARKER_RE = re.compile(
    r"\b(?:v\d+|version\s*\d+|rev\s*\d+|final|draft)\b|\(\d+\)", re.IGNORECASE
)
_PARENS_RE = re.compile(r"\([^)]*\)")
_SHORT_WORD_RE = re.compile(r"\b\w{1,3}\b")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

# Research-paper titles shorter than this are too generic to compare
MIN_PAPER_TITLE_CHARS = 10


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_filename(filename: str) -> str:
    """Reduce a filename to the words that identify the document.

    Strips the extension, normalizes separators, drops years, version
    markers and parenthesised text, and lowercases the result.

    Args:
        filename: Raw filename (e.g. "2024_Review-v2 (copy).pdf")

    Returns:
        Cleaned name (e.g. "review")
    """
    name = _EXTENSION_RE.sub("", filename.strip())
    name = _SEPARATOR_RE.sub(" ", name)
    name = _YEAR_RE.sub("", name)
    name = _VERSION_RE.sub("", name)
    name = _PARENS_RE.sub("", name)
    return _collapse(name).lower()


def word_set(text: str, min_length: int = 3) -> set[str]:
    """Split on whitespace and keep words of at least min_length characters."""
    return {word for word in text.split() if len(word) >= min_length}


def jaccard_similarity(text1: str, text2: str) -> float:
    """Jaccard index of the word sets of two strings (0.0-1.0).

    Words shorter than three characters are ignored. Two strings without
    any qualifying words score 0.0.
    """
    set1 = word_set(text1)
    set2 = word_set(text2)
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def levenshtein_distance(str1: str, str2: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(str1) < len(str2):
        str1, str2 = str2, str1

    previous = list(range(len(str2) + 1))
    for i, char1 in enumerate(str1, start=1):
        current = [i]
        for j, char2 in enumerate(str2, start=1):
            cost = 0 if char1 == char2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current

    return previous[-1]


def levenshtein_similarity(str1: str, str2: str) -> float:
    """Edit distance normalized by the longer string (0.0-1.0)."""
    max_length = max(len(str1), len(str2))
    if max_length == 0:
        return 1.0
    return (max_length - levenshtein_distance(str1, str2)) / max_length


def name_similarity(name1: str, name2: str) -> int:
    """Score two filenames after cleaning.

    Weighted 70/30 between word Jaccard and normalized edit distance; word
    overlap is the stronger signal for document titles.
    """
    clean1 = clean_filename(name1)
    clean2 = clean_filename(name2)

    jaccard = jaccard_similarity(clean1, clean2) * 100
    levenshtein = levenshtein_similarity(clean1, clean2) * 100
    return round(jaccard * 0.7 + levenshtein * 0.3)


def has_version_marker(filename: str) -> bool:
    """True when the name carries v2 / rev 3 / final / draft / (1) style markers."""
    return _VERSION_MARKER_RE.search(_SEPARATOR_RE.sub(" ", filename)) is not None


def is_version_of(name1: str, name2: str) -> bool:
    """Detect two filenames that differ only by version markers.

    Requires a version marker on at least one side and more than 80% word
    overlap once markers are removed.
    """
    if not (has_version_marker(name1) or has_version_marker(name2)):
        return False

    def base(name: str) -> str:
        stem = _SEPARATOR_RE.sub(" ", _EXTENSION_RE.sub("", name))
        return _collapse(_VERSION_MARKER_RE.sub(" ", stem)).lower()

    return jaccard_similarity(base(name1), base(name2)) > 0.8


def extract_paper_title(filename: str) -> str:
    """Guess the title words of a research-paper filename.

    Years, separators and short tokens (initials, "et", "al") are dropped.
    """
    title = _EXTENSION_RE.sub("", filename)
    title = _SEPARATOR_RE.sub(" ", title)
    title = _YEAR_RE.sub("", title)
    title = _SHORT_WORD_RE.sub("", title)
    return _collapse(title).lower()


def paper_title_similarity(name1: str, name2: str) -> int:
    """Score two research-paper filenames by title words."""
    title1 = extract_paper_title(name1)
    title2 = extract_paper_title(name2)

    if len(title1) < MIN_PAPER_TITLE_CHARS or len(title2) < MIN_PAPER_TITLE_CHARS:
        return 0

    return round(jaccard_similarity(title1, title2) * 100)


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    return _collapse(_NON_WORD_RE.sub(" ", text.lower()))


def content_fingerprint(text: str | None) -> str | None:
    """SHA-256 of the normalized text, or None when there is no usable text."""
    if text is None:
        return None

    normalized = normalize_text(text)
    if not normalized:
        return None

    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def text_similarity(text1: str, text2: str, *, sample_chars: int = 2000) -> int:
    """Score two extracted texts by word overlap of their leading sample.

    Words of four or more characters are compared so that function words
    do not dominate. Texts too short to contain any such word fall back to
    comparing every word.
    """
    normalized1 = normalize_text(text1[:sample_chars])
    normalized2 = normalize_text(text2[:sample_chars])

    words1 = word_set(normalized1, min_length=4)
    words2 = word_set(normalized2, min_length=4)
    if not words1 or not words2:
        words1 = word_set(normalized1, min_length=1)
        words2 = word_set(normalized2, min_length=1)

    union = words1 | words2
    if not words1 or not words2 or not union:
        return 0

    return round(len(words1 & words2) / len(union) * 100)
