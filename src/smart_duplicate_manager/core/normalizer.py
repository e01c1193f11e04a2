"""Title normalization for grouping candidate duplicates."""

import re

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str | None) -> str:
    """
    Canonicalize a display title into a comparison key.

    Args:
        title: Free-text display title

    Returns:
        Lower-cased title with punctuation removed and whitespace collapsed,
        or an empty string for empty input

    Example:
        >>> normalize_title("  The  Matrix: Reloaded! ")
        'the matrix reloaded'
    """
    if not title or not title.strip():
        return ""

    normalized = title.lower()
    normalized = _NON_WORD.sub("", normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip()


def titles_match(title1: str | None, title2: str | None) -> bool:
    """Check whether two titles share the same normalized key."""
    return normalize_title(title1) == normalize_title(title2)
