"""Durable key-value persistence and JSON codecs for papers and genres."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from platformdirs import user_data_dir

from paper_match.errors import PersistenceCorrupt, PersistenceError
from paper_match.models import CONFIG_APP_NAME, DEFAULT_CATEGORY, Genre, Paper, PaperSource

logger = logging.getLogger(__name__)

# Persisted record keys
SAVED_PAPERS_KEY = "savedPapers"
GENRES_KEY = "genres"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque string-keyed durable storage."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` atomically via tempfile + os.replace().

    Creates the parent directory. Raises OSError; the temp file never survives
    a failed write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.stem}-")
    closed = False
    try:
        os.write(fd, text.encode("utf-8"))
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def get_data_dir() -> Path:
    """Get the directory holding persisted records.

    Uses platformdirs for a cross-platform data directory, e.g.
    ``~/.local/share/paper-match`` on Linux.
    """
    return Path(user_data_dir(CONFIG_APP_NAME))


class JsonFileStore:
    """One ``<key>.json`` file per key, replaced atomically on write."""

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory if directory is not None else get_data_dir()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read %s, treating as absent: %s", path, e)
            return None

    def write(self, key: str, value: str) -> None:
        """Raises PersistenceError when the directory or file cannot be written."""
        path = self._path(key)
        try:
            atomic_write_text(path, value)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to delete {key}: {e}") from e


class SerializedWriter:
    """Serialize writes per key so concurrent mutations cannot lose updates.

    The payload is rendered inside the per-key lock, so whichever write runs
    last persists the latest state.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def write(self, key: str, render: Callable[[], str]) -> bool:
        """Render and write one record. Returns False (and logs) on failure."""
        async with self._lock_for(key):
            payload = render()
            try:
                await asyncio.to_thread(self._store.write, key, payload)
            except PersistenceError as e:
                logger.error("Failed to persist %s: %s", key, e)
                return False
        return True


# ============================================================================
# Codecs
# ============================================================================


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _load_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceCorrupt(f"Invalid JSON: {e}") from e


def paper_to_dict(paper: Paper) -> dict[str, Any]:
    return {
        "id": paper.id,
        "title": paper.title,
        "abstract": paper.abstract,
        "authors": paper.authors,
        "publishedDate": paper.published_date.isoformat(),
        "categories": paper.categories,
        "source": paper.source.value,
        "url": paper.url,
        "pdfUrl": paper.pdf_url,
        "isLiked": paper.is_liked,
        "isRead": paper.is_read,
        "translatedTitle": paper.translated_title,
        "translatedAbstract": paper.translated_abstract,
        "translatedLanguage": paper.translated_language,
    }


def _parse_datetime(raw: Any) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def paper_from_dict(data: Any) -> Paper | None:
    """Decode one stored paper; returns None for records missing required fields."""
    if not isinstance(data, dict):
        return None
    paper_id = _safe_get(data, "id", "", str)
    title = _safe_get(data, "title", "", str)
    abstract = _safe_get(data, "abstract", "", str)
    published = _parse_datetime(data.get("publishedDate"))
    if not paper_id or not title or not abstract or published is None:
        return None

    authors = [a for a in _safe_get(data, "authors", [], list) if isinstance(a, str)]
    categories = [c for c in _safe_get(data, "categories", [], list) if isinstance(c, str)]
    pdf_url = data.get("pdfUrl")
    translated_title = data.get("translatedTitle")
    translated_abstract = data.get("translatedAbstract")
    translated_language = data.get("translatedLanguage")
    return Paper(
        id=paper_id,
        title=title,
        abstract=abstract,
        authors=authors,
        published_date=published,
        categories=categories or [DEFAULT_CATEGORY],
        source=PaperSource.parse(data.get("source")),
        url=_safe_get(data, "url", "", str),
        pdf_url=pdf_url if isinstance(pdf_url, str) else None,
        is_liked=_safe_get(data, "isLiked", False, bool),
        is_read=_safe_get(data, "isRead", False, bool),
        translated_title=translated_title if isinstance(translated_title, str) else None,
        translated_abstract=translated_abstract if isinstance(translated_abstract, str) else None,
        translated_language=translated_language if isinstance(translated_language, str) else None,
    )


def papers_to_json(papers: list[Paper]) -> str:
    return json.dumps([paper_to_dict(p) for p in papers], indent=2, ensure_ascii=False)


def papers_from_json(raw: str) -> list[Paper]:
    """Decode the saved-papers record.

    Raises PersistenceCorrupt when the root is not a JSON list. Individual
    malformed elements are skipped with a warning.
    """
    data = _load_json(raw)
    if not isinstance(data, list):
        raise PersistenceCorrupt(f"Expected a list of papers, got {type(data).__name__}")

    papers: list[Paper] = []
    seen_ids: set[str] = set()
    for item in data:
        paper = paper_from_dict(item)
        if paper is None:
            logger.warning("Skipping malformed saved paper record")
            continue
        if paper.id in seen_ids:
            continue
        seen_ids.add(paper.id)
        papers.append(paper)
    return papers


def genres_to_json(genres: list[Genre]) -> str:
    """Encode non-default genres plus the enabled overlay for every genre."""
    data = {
        "custom": [
            {"id": g.id, "name": g.name, "query": g.query, "isEnabled": g.is_enabled}
            for g in genres
            if not g.is_default
        ],
        "states": {g.id: g.is_enabled for g in genres},
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def genres_from_json(raw: str) -> tuple[list[Genre], dict[str, bool]]:
    """Decode the genres record into (custom genres, enabled overlay by id)."""
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise PersistenceCorrupt(f"Expected a genres object, got {type(data).__name__}")

    custom: list[Genre] = []
    for item in _safe_get(data, "custom", [], list):
        if not isinstance(item, dict):
            continue
        genre_id = _safe_get(item, "id", "", str)
        name = _safe_get(item, "name", "", str).strip()
        query = _safe_get(item, "query", "", str).strip()
        if not genre_id or not name or not query:
            logger.warning("Skipping malformed custom genre record")
            continue
        custom.append(
            Genre(
                id=genre_id,
                name=name,
                query=query,
                is_default=False,
                is_enabled=_safe_get(item, "isEnabled", True, bool),
            )
        )

    states = {
        str(k): v
        for k, v in _safe_get(data, "states", {}, dict).items()
        if isinstance(k, str) and isinstance(v, bool)
    }
    return custom, states


__all__ = [
    "GENRES_KEY",
    "SAVED_PAPERS_KEY",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "SerializedWriter",
    "atomic_write_text",
    "genres_from_json",
    "genres_to_json",
    "get_data_dir",
    "paper_from_dict",
    "paper_to_dict",
    "papers_from_json",
    "papers_to_json",
]
