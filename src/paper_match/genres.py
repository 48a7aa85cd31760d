"""Genre registry: built-in and user-defined topical filters."""

from __future__ import annotations

import logging
import re

from paper_match.errors import PersistenceCorrupt, PersistenceError, ValidationError
from paper_match.models import Genre
from paper_match.storage import GENRES_KEY, KeyValueStore, genres_from_json, genres_to_json

logger = logging.getLogger(__name__)

QUERY_SEPARATOR = " OR "

# (name, query) for each built-in genre, in registry order
DEFAULT_GENRE_SPECS: tuple[tuple[str, str], ...] = (
    ("AI & Machine Learning", "cat:cs.AI OR cat:cs.LG OR cat:stat.ML"),
    ("Computer Vision", "cat:cs.CV"),
    ("Natural Language Processing", "cat:cs.CL"),
    ("Robotics", "cat:cs.RO"),
    ("Neural Networks", "cat:cs.NE"),
    ("Human-Computer Interaction", "cat:cs.HC"),
    ("Computer Graphics", "cat:cs.GR"),
    ("Distributed Computing", "cat:cs.DC"),
    ("Cryptography", "cat:cs.CR"),
    ("Information Theory", "cat:cs.IT"),
)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def _default_genre_id(name: str) -> str:
    return "default-" + _SLUG_PATTERN.sub("-", name.lower()).strip("-")


def build_default_genres() -> list[Genre]:
    """Construct the built-in genres with stable ids."""
    return [
        Genre(name=name, query=query, is_default=True, id=_default_genre_id(name))
        for name, query in DEFAULT_GENRE_SPECS
    ]


class GenreRegistry:
    """Owns the ordered genre list and composes the search expression.

    Built-in genres are rebuilt at every start; only custom genres and the
    enabled flags are read from and written to ``store``.

    Synchronous: construction and every mutation do blocking storage I/O.
    Async callers build it with ``asyncio.to_thread`` or use it outside the
    event loop.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._genres: list[Genre] = self._load()

    def _load(self) -> list[Genre]:
        defaults = build_default_genres()
        raw = self._store.read(GENRES_KEY)
        if raw is None:
            return defaults
        try:
            custom, states = genres_from_json(raw)
        except PersistenceCorrupt as e:
            logger.warning("Stored genres are corrupt, using defaults: %s", e)
            return defaults

        default_ids = {d.id for d in defaults}
        genres = defaults + [g for g in custom if g.id not in default_ids]
        for genre in genres:
            if genre.id in states:
                genre.is_enabled = states[genre.id]
        return genres

    def _save(self) -> None:
        try:
            self._store.write(GENRES_KEY, genres_to_json(self._genres))
        except PersistenceError as e:
            logger.error("Failed to save genres: %s", e)

    @property
    def genres(self) -> list[Genre]:
        return list(self._genres)

    @property
    def enabled_genres(self) -> list[Genre]:
        return [g for g in self._genres if g.is_enabled]

    @property
    def fallback_genre(self) -> Genre:
        """The first built-in genre, used when nothing is enabled."""
        return next(g for g in self._genres if g.is_default)

    def get(self, genre_id: str) -> Genre | None:
        for genre in self._genres:
            if genre.id == genre_id:
                return genre
        return None

    def compose_query(self) -> str:
        """OR-join the enabled genres' queries in registry order."""
        enabled = self.enabled_genres
        if not enabled:
            return self.fallback_genre.query
        return QUERY_SEPARATOR.join(g.query for g in enabled)

    def add_custom_genre(self, name: str, query: str) -> Genre:
        """Append an enabled, user-defined genre.

        Raises:
            ValidationError: If name or query is blank.
        """
        name_clean = name.strip()
        query_clean = query.strip()
        if not name_clean:
            raise ValidationError("Genre name must not be empty")
        if not query_clean:
            raise ValidationError("Genre query must not be empty")

        genre = Genre(name=name_clean, query=query_clean, is_default=False)
        self._genres.append(genre)
        self._save()
        logger.info("Added custom genre %r (%s)", genre.name, genre.id)
        return genre

    def remove_genre(self, genre_id: str) -> bool:
        """Remove a custom genre. Built-in and unknown ids are ignored."""
        genre = self.get(genre_id)
        if genre is None or genre.is_default:
            return False
        self._genres = [g for g in self._genres if g.id != genre_id]
        self._save()
        return True

    def toggle_genre(self, genre_id: str) -> Genre | None:
        genre = self.get(genre_id)
        if genre is None:
            return None
        genre.is_enabled = not genre.is_enabled
        self._save()
        return genre


__all__ = [
    "DEFAULT_GENRE_SPECS",
    "QUERY_SEPARATOR",
    "GenreRegistry",
    "build_default_genres",
]
