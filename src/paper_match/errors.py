"""Exception hierarchy for paper-match.

Only ``ValidationError`` is ever shown to a user as an error. Catalog,
persistence and translation failures are caught at their point of use and
turned into a degraded-but-working state.
"""

from __future__ import annotations


class PaperMatchError(Exception):
    """Base exception for paper-match errors."""


class ValidationError(PaperMatchError, ValueError):
    """Raised when user input (genre name/query, keyword) is empty or invalid."""


class CatalogError(PaperMatchError):
    """Raised when the remote catalog cannot provide a usable result."""


class NetworkError(CatalogError):
    """Raised when the catalog request fails or returns a non-success status."""


class ParseError(CatalogError):
    """Raised when the catalog response is not a well-formed Atom feed."""


class PersistenceError(PaperMatchError):
    """Raised when durable state cannot be read or written."""


class PersistenceCorrupt(PersistenceError):
    """Raised when a persisted record exists but cannot be decoded."""


class TranslationError(PaperMatchError):
    """Base class for live translation failures."""


class TranslationUnavailable(TranslationError):
    """Raised when no live translation capability is configured or reachable."""


class TranslationFailed(TranslationError):
    """Raised when the live translation capability ran but produced no result."""


__all__ = [
    "CatalogError",
    "NetworkError",
    "PaperMatchError",
    "ParseError",
    "PersistenceCorrupt",
    "PersistenceError",
    "TranslationError",
    "TranslationFailed",
    "TranslationUnavailable",
    "ValidationError",
]
