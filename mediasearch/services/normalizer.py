"""Entity normalization helpers shared by the merger, ranker and aggregator."""
from __future__ import annotations

import re
from typing import Any

_NON_ALNUM = re.compile(r"[^a-z0-9]")

# Upstream sometimes serializes a missing image as a literal string
_ABSENT_MARKERS = frozenset({"null", "undefined"})


def normalize_name(name: str) -> str:
    """Merge key for studios, networks and collections.

    Lowercases and drops everything outside ``[a-z0-9]``; two names merge
    exactly when their keys are equal.

    Examples:
        >>> normalize_name("Amazon Studios")
        'amazonstudios'
        >>> normalize_name("amazon-studios!!")
        'amazonstudios'
    """
    return _NON_ALNUM.sub("", (name or "").lower())


def has_displayable_image(path: Any) -> bool:
    """Whether ``path`` points at an image the UI can render.

    False for None, non-strings, blank strings, and the literal strings
    "null" / "undefined" in any casing.
    """
    if not isinstance(path, str):
        return False
    stripped = path.strip()
    return bool(stripped) and stripped.lower() not in _ABSENT_MARKERS
