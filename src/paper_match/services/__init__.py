"""Service layer: catalog access and translation."""

from paper_match.services.catalog_service import (
    CatalogClient,
    SearchDegraded,
    SearchEmpty,
    SearchOk,
    SearchOutcome,
    keyword_query,
    random_topic_query,
)
from paper_match.services.interfaces import (
    AppServices,
    CatalogService,
    PaperTranslationService,
    build_default_app_services,
)
from paper_match.services.translation_service import (
    CommandTranslator,
    TranslationService,
    Translator,
    resolve_translator,
)

__all__ = [
    "AppServices",
    "CatalogClient",
    "CatalogService",
    "CommandTranslator",
    "PaperTranslationService",
    "SearchDegraded",
    "SearchEmpty",
    "SearchOk",
    "SearchOutcome",
    "TranslationService",
    "Translator",
    "build_default_app_services",
    "keyword_query",
    "random_topic_query",
    "resolve_translator",
]
