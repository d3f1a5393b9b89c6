"""Cross-type genre vocabulary.

TMDB keeps separate genre lists for movies and TV, and a few concepts use
different ids on each side (movie "Sci-Fi" is 878, TV "Sci-Fi & Fantasy"
is 10765). ``UNIFIED_GENRES`` maps one display genre onto the ids to use
for each discover type.
"""
from __future__ import annotations

from dataclasses import dataclass

ANIMATION_GENRE_ID = 16
ANIME_LANGUAGE = "ja"


@dataclass(frozen=True)
class UnifiedGenre:
    name: str
    movie_ids: tuple[int, ...]
    tv_ids: tuple[int, ...]
    anime_ids: tuple[int, ...]

    def ids_for(self, discover_type: str) -> tuple[int, ...]:
        if discover_type == "movie":
            return self.movie_ids
        if discover_type == "tv":
            return self.tv_ids
        return self.anime_ids


UNIFIED_GENRES: tuple[UnifiedGenre, ...] = (
    UnifiedGenre("Action", (28,), (10759,), (28, 10759)),
    UnifiedGenre("Adventure", (12,), (10759,), (12, 10759)),
    UnifiedGenre("Animation", (16,), (16,), (16,)),
    UnifiedGenre("Comedy", (35,), (35,), (35,)),
    UnifiedGenre("Crime", (80,), (80,), (80,)),
    UnifiedGenre("Documentary", (99,), (99,), (99,)),
    UnifiedGenre("Drama", (18,), (18,), (18,)),
    UnifiedGenre("Family", (10751,), (10751, 10762), (10751, 10762)),  # 10762 is Kids
    UnifiedGenre("Fantasy", (14,), (10765,), (14, 10765)),
    UnifiedGenre("History", (36,), (36,), (36,)),
    UnifiedGenre("Horror", (27,), (27,), (27,)),
    UnifiedGenre("Music", (10402,), (10402,), (10402,)),
    UnifiedGenre("Mystery", (9648,), (9648,), (9648,)),
    UnifiedGenre("Romance", (10749,), (10749,), (10749,)),
    UnifiedGenre("Sci-Fi", (878,), (10765,), (878, 10765)),
    UnifiedGenre("Thriller", (53,), (53,), (53,)),
    UnifiedGenre("War", (10752,), (10768,), (10752, 10768)),
    UnifiedGenre("Western", (37,), (37,), (37,)),
)


def genre_ids_for(names: list[str], discover_type: str) -> frozenset[int]:
    """Translate unified genre names (case-insensitive) into ids for a type.

    Unknown names are ignored.
    """
    wanted = {n.strip().lower() for n in names}
    ids: set[int] = set()
    for genre in UNIFIED_GENRES:
        if genre.name.lower() in wanted:
            ids.update(genre.ids_for(discover_type))
    return frozenset(ids)
