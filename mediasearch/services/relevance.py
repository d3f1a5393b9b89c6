"""Relevance ranking for free-text search across mixed result types.

The score is a sum of independent terms (prefix, word coverage,
compactness, popularity) with an exact-match shortcut. Constants and branch
order are part of the contract: callers and tests compare raw scores.
"""
from __future__ import annotations

import math
from collections.abc import Iterable

import structlog

from mediasearch.models.api_schemas import SearchResult

logger = structlog.get_logger(__name__)

EXACT_MATCH_SCORE = 1000.0
PREFIX_BONUS = 50.0
WORD_COVERAGE_WEIGHT = 30.0
COMPACTNESS_WEIGHT = 20.0
POPULARITY_WEIGHT = 5.0


def score(name: str, query: str, popularity: float = 0.0) -> float:
    """Composite relevance of ``name`` for ``query``.

    Args:
        name: Candidate display name.
        query: Free-text query as typed.
        popularity: Catalog popularity (<= 0 contributes nothing).

    Returns:
        1000 for an exact case-insensitive match, otherwise the sum of the
        prefix, word-coverage, compactness and popularity terms.

    Examples:
        >>> score("Iron Man", "iron man ", 250.0)
        1000.0
    """
    # Only the exact-match check ignores surrounding whitespace in the name
    n = (name or "").lower()
    q = (query or "").strip().lower()

    if n.strip() == q:
        return EXACT_MATCH_SCORE

    total = 0.0

    if n.startswith(q):
        total += PREFIX_BONUS

    query_words = q.split()
    name_words = n.split()
    if query_words:
        matched = sum(1 for qw in query_words if any(qw in nw for nw in name_words))
        total += (matched / len(query_words)) * WORD_COVERAGE_WEIGHT

    if len(n) > 0:
        total += (len(q) / len(n)) * COMPACTNESS_WEIGHT

    if popularity and popularity > 0:
        total += math.log10(popularity + 1) * POPULARITY_WEIGHT

    return total


def display_name(item: SearchResult) -> str:
    """Name used for scoring: movie title, otherwise ``name``."""
    return item.display_name


def rank(items: Iterable[SearchResult], query: str) -> list[SearchResult]:
    """Score every candidate and order by descending relevance.

    Items come back as copies carrying ``relevance_score``. The sort is
    stable, so equal scores keep their fetch/merge order.
    """
    scored = [
        item.model_copy(update={"relevance_score": score(display_name(item), query, item.popularity)})
        for item in items
    ]
    scored.sort(key=lambda item: item.relevance_score, reverse=True)
    logger.debug("results_ranked", query=query, candidates=len(scored))
    return scored
