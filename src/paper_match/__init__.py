"""paper-match: genre-driven arXiv discovery with an offline-tolerant library."""

from paper_match.config import AppConfig, load_config, save_config, update_config
from paper_match.errors import (
    CatalogError,
    NetworkError,
    PaperMatchError,
    ParseError,
    PersistenceCorrupt,
    PersistenceError,
    TranslationError,
    TranslationFailed,
    TranslationUnavailable,
    ValidationError,
)
from paper_match.fallback_translation import FALLBACK_MARKER, batch_translate, translate
from paper_match.genres import GenreRegistry
from paper_match.library import filter_papers, sort_papers
from paper_match.models import DEFAULT_QUERY, Genre, Paper, PaperSource, TranslatedPaper
from paper_match.services import (
    CatalogClient,
    CommandTranslator,
    SearchDegraded,
    SearchEmpty,
    SearchOk,
    SearchOutcome,
    TranslationService,
    Translator,
    keyword_query,
    random_topic_query,
)
from paper_match.storage import JsonFileStore, KeyValueStore, MemoryStore
from paper_match.store import NO_RESULTS_MESSAGE, OFFLINE_MESSAGE, PaperStore, StoreState

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_QUERY",
    "FALLBACK_MARKER",
    "NO_RESULTS_MESSAGE",
    "OFFLINE_MESSAGE",
    "AppConfig",
    "CatalogClient",
    "CatalogError",
    "CommandTranslator",
    "Genre",
    "GenreRegistry",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "NetworkError",
    "Paper",
    "PaperMatchError",
    "PaperSource",
    "PaperStore",
    "ParseError",
    "PersistenceCorrupt",
    "PersistenceError",
    "SearchDegraded",
    "SearchEmpty",
    "SearchOk",
    "SearchOutcome",
    "StoreState",
    "TranslatedPaper",
    "TranslationError",
    "TranslationFailed",
    "TranslationService",
    "TranslationUnavailable",
    "Translator",
    "ValidationError",
    "batch_translate",
    "filter_papers",
    "keyword_query",
    "load_config",
    "random_topic_query",
    "save_config",
    "sort_papers",
    "translate",
    "update_config",
]
