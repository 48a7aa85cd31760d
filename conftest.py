"""Shared test fixtures for paper-match tests."""

from __future__ import annotations

import asyncio
import random
from datetime import UTC, datetime
from types import SimpleNamespace

import httpx
import pytest

from paper_match.models import Paper, PaperSource
from paper_match.services.catalog_service import (
    CatalogClient,
    SearchEmpty,
    SearchOutcome,
)
from paper_match.storage import MemoryStore

# ── Atom feed builders ───────────────────────────────────────────────────────

FEED_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">\n'
    "  <title>arXiv Query Results</title>\n"
)
FEED_FOOTER = "</feed>\n"


def atom_entry(
    raw_id: str | None = "http://arxiv.org/abs/2401.12345v1",
    title: str | None = "Sparse Attention for Long Documents",
    summary: str | None = "We propose a sparse attention method.",
    published: str | None = "2024-01-15T18:00:00Z",
    authors: tuple[str, ...] = ("Alice Smith", "Bob Jones"),
    categories: tuple[str, ...] = ("cs.CL", "cs.LG"),
) -> str:
    """Build one Atom <entry>; pass None to omit an element."""
    parts = ["  <entry>"]
    if raw_id is not None:
        parts.append(f"    <id>{raw_id}</id>")
    if published is not None:
        parts.append(f"    <published>{published}</published>")
    if title is not None:
        parts.append(f"    <title>{title}</title>")
    if summary is not None:
        parts.append(f"    <summary>{summary}</summary>")
    for name in authors:
        parts.append(f"    <author><name>{name}</name></author>")
    for term in categories:
        parts.append(f'    <category term="{term}" scheme="http://arxiv.org/schemas/atom"/>')
    parts.append("  </entry>")
    return "\n".join(parts) + "\n"


def atom_feed(*entries: str) -> str:
    return FEED_HEADER + "".join(entries) + FEED_FOOTER


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_paper():
    """Factory fixture for creating Paper instances with sensible defaults."""

    def _make(
        paper_id: str = "2401.12345v1",
        title: str = "Test Paper",
        abstract: str = "Test abstract content.",
        authors: list[str] | None = None,
        published_date: datetime | None = None,
        categories: list[str] | None = None,
        **kwargs,
    ) -> Paper:
        return Paper(
            id=paper_id,
            title=title,
            abstract=abstract,
            authors=authors if authors is not None else ["Test Author"],
            published_date=published_date or datetime(2024, 1, 15, tzinfo=UTC),
            categories=categories if categories is not None else ["AI"],
            source=kwargs.pop("source", PaperSource.ARXIV),
            url=kwargs.pop("url", f"https://arxiv.org/abs/{paper_id}"),
            pdf_url=kwargs.pop("pdf_url", f"https://arxiv.org/pdf/{paper_id}.pdf"),
            **kwargs,
        )

    return _make


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_catalog():
    """Build a CatalogClient whose HTTP layer is served by ``handler``."""

    def _make(handler, seed: int = 0) -> CatalogClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return CatalogClient(
            client=client,
            min_interval_seconds=0.0,
            rng=random.Random(seed),
            now=lambda: datetime(2024, 6, 1, tzinfo=UTC),
        )

    return _make


# ── Fakes ────────────────────────────────────────────────────────────────────


class FakeCatalog:
    """Catalog stub returning queued outcomes; records every query."""

    def __init__(self, outcomes: dict[str, SearchOutcome] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.queries: list[tuple[str, int]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.surprise_outcome: SearchOutcome = SearchEmpty()

    async def search(self, query: str, max_results: int = 20) -> SearchOutcome:
        self.queries.append((query, max_results))
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        return self.outcomes.get(query, SearchEmpty())

    async def surprise_me(self) -> SearchOutcome:
        self.queries.append(("surprise", 15))
        return self.surprise_outcome


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def atom():
    """Atom feed builders: ``atom.entry(...)`` and ``atom.feed(*entries)``."""
    return SimpleNamespace(entry=atom_entry, feed=atom_feed)
