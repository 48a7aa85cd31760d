"""Data models and constants for the paper-match application."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum

# Application identity used for platformdirs paths
CONFIG_APP_NAME = "paper-match"

# arXiv API constants
ARXIV_API_DEFAULT_MAX_RESULTS = 20
ARXIV_API_RANDOM_MAX_RESULTS = 15
ARXIV_API_MAX_RESULTS_LIMIT = 100

# Broad query used for the initial load and plain refreshes
DEFAULT_QUERY = "cat:cs.AI OR cat:cs.LG OR cat:cs.CL OR cat:cs.CV"

# Category assigned when a feed entry carries no category tags
DEFAULT_CATEGORY = "AI"

# Topic codes used by the "surprise me" refresh
RANDOM_TOPIC_CODES = ("cs.AI", "cs.LG", "cs.CL", "cs.CV", "cs.RO", "cs.NE", "stat.ML")

# Library sort options for the saved set
LIBRARY_SORT_OPTIONS = ("date_added", "title", "author", "published")

# Human-readable date used by list views
DISPLAY_DATE_FORMAT = "%b %d, %Y"


class PaperSource(str, Enum):
    """Catalog a paper was discovered in."""

    ARXIV = "ArXiv"
    ACM = "ACM"
    IEEE = "IEEE"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: object) -> PaperSource:
        """Map a stored value to a source, defaulting to OTHER."""
        for member in cls:
            if value == member.value:
                return member
        return cls.OTHER


@dataclass(slots=True)
class Paper:
    """A discovered paper.

    Equality and hashing use ``id`` only, so two records for the same
    catalog entry compare equal even if their client-local flags differ.
    """

    id: str
    title: str
    abstract: str
    authors: list[str] = field(default_factory=list)
    published_date: datetime = field(default_factory=lambda: datetime.now(UTC))
    categories: list[str] = field(default_factory=lambda: [DEFAULT_CATEGORY])
    source: PaperSource = PaperSource.ARXIV
    url: str = ""
    pdf_url: str | None = None
    is_liked: bool = False
    is_read: bool = False
    translated_title: str | None = None
    translated_abstract: str | None = None
    translated_language: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Paper):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def authors_string(self) -> str:
        return ", ".join(self.authors)

    @property
    def formatted_date(self) -> str:
        return self.published_date.strftime(DISPLAY_DATE_FORMAT)

    def with_flags(self, **flags: bool) -> Paper:
        """Return a copy with updated client-local flags (is_liked / is_read)."""
        unknown = set(flags) - {"is_liked", "is_read"}
        if unknown:
            raise TypeError(f"Not a client-local flag: {', '.join(sorted(unknown))}")
        return replace(self, **flags)

    def with_translation(self, title: str, abstract: str, language: str) -> Paper:
        """Return a copy carrying a computed translation into ``language``."""
        return replace(
            self,
            translated_title=title,
            translated_abstract=abstract,
            translated_language=language,
        )

    def stored_translation(self, language: str) -> TranslatedPaper | None:
        """The translation held on this record, if it is complete and for ``language``."""
        if self.translated_language != language:
            return None
        if self.translated_title is None or self.translated_abstract is None:
            return None
        return TranslatedPaper(
            paper_id=self.id,
            target_language=language,
            title=self.translated_title,
            abstract=self.translated_abstract,
        )


def new_genre_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Genre:
    """A named, toggleable search filter."""

    name: str
    query: str
    is_default: bool = False
    is_enabled: bool = True
    id: str = field(default_factory=new_genre_id)


@dataclass(slots=True)
class TranslatedPaper:
    """Translated title/abstract pair for one paper and target language."""

    paper_id: str
    target_language: str
    title: str
    abstract: str


__all__ = [
    "ARXIV_API_DEFAULT_MAX_RESULTS",
    "ARXIV_API_MAX_RESULTS_LIMIT",
    "ARXIV_API_RANDOM_MAX_RESULTS",
    "CONFIG_APP_NAME",
    "DEFAULT_CATEGORY",
    "DEFAULT_QUERY",
    "DISPLAY_DATE_FORMAT",
    "LIBRARY_SORT_OPTIONS",
    "RANDOM_TOPIC_CODES",
    "Genre",
    "Paper",
    "PaperSource",
    "TranslatedPaper",
    "new_genre_id",
]
