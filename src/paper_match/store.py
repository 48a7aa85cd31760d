"""Paper store: search orchestration, saved-set persistence, observable state."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from paper_match.errors import PersistenceCorrupt, PersistenceError
from paper_match.genres import GenreRegistry
from paper_match.models import (
    ARXIV_API_DEFAULT_MAX_RESULTS,
    DEFAULT_QUERY,
    Paper,
    TranslatedPaper,
)
from paper_match.services.catalog_service import SearchDegraded, SearchEmpty, SearchOutcome
from paper_match.services.interfaces import CatalogService, PaperTranslationService
from paper_match.services.translation_service import TranslationService
from paper_match.storage import (
    SAVED_PAPERS_KEY,
    KeyValueStore,
    SerializedWriter,
    papers_from_json,
    papers_to_json,
)

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "Using sample papers (API unavailable)"
NO_RESULTS_MESSAGE = "No papers found. Try different search terms."


@dataclass(frozen=True, slots=True)
class StoreState:
    """Immutable snapshot of everything the presentation layer observes."""

    current_results: tuple[Paper, ...] = ()
    saved_papers: tuple[Paper, ...] = ()
    is_loading: bool = False
    error_message: str | None = None


StateListener = Callable[[StoreState], None]


def message_for_outcome(outcome: SearchOutcome) -> str | None:
    """Map a search outcome to the informational message shown to the user."""
    if isinstance(outcome, SearchDegraded):
        return OFFLINE_MESSAGE
    if isinstance(outcome, SearchEmpty):
        return NO_RESULTS_MESSAGE
    return None


class PaperStore:
    """Single owner of current results and the saved set.

    Searches use a monotonic request token: only the most recently issued
    search publishes its results, and responses to superseded searches are
    discarded when they arrive.
    """

    def __init__(
        self,
        catalog: CatalogService,
        storage: KeyValueStore,
        *,
        translation: PaperTranslationService | None = None,
        max_results: int = ARXIV_API_DEFAULT_MAX_RESULTS,
    ) -> None:
        self._catalog = catalog
        self._storage = storage
        self._writer = SerializedWriter(storage)
        self._translation = translation if translation is not None else TranslationService()
        self._max_results = max_results

        self._current_results: list[Paper] = []
        self._saved_papers: list[Paper] = []
        self._is_loading = False
        self._error_message: str | None = None

        self._tokens = itertools.count(1)
        self._latest_token = 0
        self._listeners: list[StateListener] = []

    @classmethod
    async def create(
        cls,
        catalog: CatalogService,
        storage: KeyValueStore,
        *,
        translation: PaperTranslationService | None = None,
        max_results: int = ARXIV_API_DEFAULT_MAX_RESULTS,
        initial_search: bool = True,
    ) -> PaperStore:
        """Construct a store, load the saved set, and run the initial search."""
        store = cls(catalog, storage, translation=translation, max_results=max_results)
        await store.start(initial_search=initial_search)
        return store

    # ── Observable state ─────────────────────────────────────────────────

    @property
    def state(self) -> StoreState:
        return StoreState(
            current_results=tuple(self._current_results),
            saved_papers=tuple(self._saved_papers),
            is_loading=self._is_loading,
            error_message=self._error_message,
        )

    @property
    def current_results(self) -> list[Paper]:
        return list(self._current_results)

    @property
    def saved_papers(self) -> list[Paper]:
        return list(self._saved_papers)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error_message(self) -> str | None:
        return self._error_message

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for state changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.warning("State listener %r failed", listener, exc_info=True)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self, *, initial_search: bool = True) -> None:
        self._saved_papers = await self._load_saved()
        self._publish()
        if initial_search:
            await self.refresh()

    async def _load_saved(self) -> list[Paper]:
        try:
            raw = await asyncio.to_thread(self._storage.read, SAVED_PAPERS_KEY)
        except PersistenceError as e:
            logger.warning("Could not read saved papers, starting empty: %s", e)
            return []
        if raw is None:
            return []
        try:
            papers = papers_from_json(raw)
        except PersistenceCorrupt as e:
            logger.warning("Saved papers are corrupt, starting empty: %s", e)
            return []
        logger.debug("Loaded %d saved papers", len(papers))
        return papers

    async def _persist_saved(self) -> bool:
        return await self._writer.write(
            SAVED_PAPERS_KEY, lambda: papers_to_json(self._saved_papers)
        )

    # ── Searching ────────────────────────────────────────────────────────

    async def search(self, query: str) -> SearchOutcome:
        """Run a catalog search and publish its outcome unless superseded."""
        return await self._run(query, self._catalog.search(query, self._max_results))

    async def _run(self, label: str, call: Awaitable[SearchOutcome]) -> SearchOutcome:
        token = next(self._tokens)
        self._latest_token = token
        self._is_loading = True
        self._error_message = None
        self._publish()

        try:
            outcome = await call
        except BaseException:
            # Cancelled or failed; the latest search must not stay loading.
            if token == self._latest_token:
                self._is_loading = False
                self._publish()
            raise
        if token != self._latest_token:
            logger.debug(
                "Discarding stale results for %r (token %d, latest %d)",
                label,
                token,
                self._latest_token,
            )
            return outcome

        self._current_results = list(outcome.papers)
        self._is_loading = False
        self._error_message = message_for_outcome(outcome)
        self._publish()
        return outcome

    async def refresh(self) -> SearchOutcome:
        return await self.search(DEFAULT_QUERY)

    async def search_genres(self, registry: GenreRegistry) -> SearchOutcome:
        return await self.search(registry.compose_query())

    async def surprise_me(self) -> SearchOutcome:
        """Search one random topic with the smaller refresh page size."""
        return await self._run("surprise", self._catalog.surprise_me())

    # ── Saved set ────────────────────────────────────────────────────────

    def is_saved(self, paper_id: str) -> bool:
        return any(p.id == paper_id for p in self._saved_papers)

    def _saved_copy(self, paper_id: str) -> Paper | None:
        return next((p for p in self._saved_papers if p.id == paper_id), None)

    def find_paper(self, paper_id: str) -> Paper | None:
        """Look up a paper in the saved set first, then in current results."""
        for paper in itertools.chain(self._saved_papers, self._current_results):
            if paper.id == paper_id:
                return paper
        return None

    async def like(self, paper: Paper) -> bool:
        """Save a liked copy of ``paper``. Liking an already-saved paper is a no-op."""
        if self.is_saved(paper.id):
            return False
        self._saved_papers.append(paper.with_flags(is_liked=True))
        self._publish()
        await self._persist_saved()
        return True

    async def remove_saved(self, paper: Paper) -> bool:
        """Remove a saved paper by id. Absent ids are a no-op."""
        remaining = [p for p in self._saved_papers if p.id != paper.id]
        removed = len(remaining) != len(self._saved_papers)
        self._saved_papers = remaining
        if removed:
            self._publish()
        await self._persist_saved()
        return removed

    async def mark_read(self, paper_id: str, is_read: bool = True) -> bool:
        """Set the read flag on a saved paper. Unknown ids are ignored."""
        for index, paper in enumerate(self._saved_papers):
            if paper.id == paper_id:
                self._saved_papers[index] = paper.with_flags(is_read=is_read)
                break
        else:
            return False
        self._publish()
        await self._persist_saved()
        return True

    # ── Translation ──────────────────────────────────────────────────────

    async def translate_paper(self, paper: Paper) -> TranslatedPaper:
        """Translate a paper; saved copies keep the result across restarts.

        A saved copy already translated into the current target language is
        returned as is, without calling the translation service.
        """
        language = self._translation.target_lang
        saved = self._saved_copy(paper.id)
        if saved is not None:
            stored = saved.stored_translation(language)
            if stored is not None:
                return stored

        translated = await self._translation.translate_paper(paper)
        for index, saved in enumerate(self._saved_papers):
            if saved.id == paper.id and saved.translated_language != translated.target_language:
                self._saved_papers[index] = saved.with_translation(
                    translated.title, translated.abstract, translated.target_language
                )
                self._publish()
                await self._persist_saved()
                break
        return translated


__all__ = [
    "NO_RESULTS_MESSAGE",
    "OFFLINE_MESSAGE",
    "PaperStore",
    "StateListener",
    "StoreState",
    "message_for_outcome",
]
