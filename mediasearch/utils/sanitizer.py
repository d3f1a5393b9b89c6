"""Cleanup of free-text search input before it reaches the catalog API."""
from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def clean_search_text(text: str, max_length: int = 200) -> str:
    """Normalize a user search query.

    1. Drop control characters
    2. Collapse runs of whitespace and trim
    3. Truncate to ``max_length``

    Punctuation and ampersands are kept as-is: "Tom & Jerry" must reach
    the API unchanged.

    Raises:
        ValueError: If the text is not a string or is empty after cleanup.

    Examples:
        >>> clean_search_text("  iron\\tman  ")
        'iron man'
    """
    if not isinstance(text, str):
        raise ValueError("Query must be a string")

    text = _CONTROL_CHARS.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()

    if not text:
        raise ValueError("Query cannot be empty")

    return text[:max_length].rstrip()
