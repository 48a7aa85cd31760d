"""Service interfaces + default adapters for store-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from paper_match.config import AppConfig
from paper_match.models import Paper, TranslatedPaper
from paper_match.services.catalog_service import CatalogClient, SearchOutcome
from paper_match.services.translation_service import TranslationService


@runtime_checkable
class CatalogService(Protocol):
    """Interface for catalog searches consumed by the paper store."""

    async def search(self, query: str, max_results: int = ...) -> SearchOutcome:
        """Search the catalog. Must not raise."""
        ...

    async def surprise_me(self) -> SearchOutcome:
        """Search one random topic."""
        ...


@runtime_checkable
class PaperTranslationService(Protocol):
    """Interface for cached per-paper translation."""

    @property
    def target_lang(self) -> str:
        """Language code translations are produced in."""
        ...

    async def translate_paper(self, paper: Paper) -> TranslatedPaper:
        """Translate a paper's title and abstract. Must not raise translation errors."""
        ...


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the store."""

    catalog: CatalogService
    translation: PaperTranslationService


def build_default_app_services(
    config: AppConfig, client: httpx.AsyncClient | None = None
) -> AppServices:
    """Build default services from user config."""
    return AppServices(
        catalog=CatalogClient.from_config(config, client=client),
        translation=TranslationService.from_config(config),
    )


__all__ = [
    "AppServices",
    "CatalogService",
    "PaperTranslationService",
    "build_default_app_services",
]
