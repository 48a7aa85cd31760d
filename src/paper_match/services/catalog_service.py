"""arXiv catalog client: request building, fetch, parse, offline fallback."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

from paper_match.config import (
    DEFAULT_MIN_REQUEST_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_USER_AGENT,
    AppConfig,
)
from paper_match.corpus import offline_papers
from paper_match.errors import CatalogError, NetworkError, ParseError, ValidationError
from paper_match.models import (
    ARXIV_API_DEFAULT_MAX_RESULTS,
    ARXIV_API_RANDOM_MAX_RESULTS,
    RANDOM_TOPIC_CODES,
    Paper,
)
from paper_match.parsing import count_feed_entries, parse_atom_feed

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"


@dataclass(slots=True)
class SearchOk:
    """The catalog answered with at least one parseable record."""

    papers: list[Paper]
    degraded: bool = field(default=False, init=False)


@dataclass(slots=True)
class SearchEmpty:
    """The catalog answered successfully with zero matches."""

    papers: list[Paper] = field(default_factory=list, init=False)
    degraded: bool = field(default=False, init=False)


@dataclass(slots=True)
class SearchDegraded:
    """The catalog failed; ``papers`` come from the offline corpus."""

    papers: list[Paper]
    reason: str
    degraded: bool = field(default=True, init=False)


SearchOutcome = SearchOk | SearchEmpty | SearchDegraded


def build_search_params(query: str, max_results: int) -> dict[str, str | int]:
    """Build arXiv API query parameters for a single newest-first page."""
    return {
        "search_query": query,
        "start": 0,
        "max_results": max_results,
        "sortBy": "submittedDate",
        "sortOrder": "descending",
    }


def random_topic_query(rng: random.Random | None = None) -> str:
    """Pick one topic code uniformly and format it as a category query."""
    chooser = rng if rng is not None else random
    return f"cat:{chooser.choice(RANDOM_TOPIC_CODES)}"


def keyword_query(text: str) -> str:
    """Build an all-fields keyword query.

    Raises:
        ValidationError: If the text is blank.
    """
    cleaned = " ".join(text.split()).replace('"', "")
    if not cleaned:
        raise ValidationError("Search text must not be empty")
    return f"all:{cleaned}"


async def enforce_rate_limit(
    *,
    last_request_at: float,
    min_interval_seconds: float,
    now: Callable[[], float],
    sleep: Callable[[float], Awaitable[None]],
) -> tuple[float, float]:
    """Wait as needed to respect API rate limits.

    Returns:
        Tuple of (new_last_request_at, waited_seconds).
    """
    current = now()
    waited_seconds = 0.0
    elapsed = current - last_request_at
    if last_request_at > 0 and elapsed < min_interval_seconds:
        waited_seconds = min_interval_seconds - elapsed
        await sleep(waited_seconds)
    return now(), waited_seconds


class CatalogClient:
    """Fetch papers from arXiv, substituting the offline corpus on failure.

    ``search`` never raises: every failure becomes a SearchDegraded outcome.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        api_url: str = ARXIV_API_URL,
        timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        min_interval_seconds: float = DEFAULT_MIN_REQUEST_INTERVAL,
        random_max_results: int = ARXIV_API_RANDOM_MAX_RESULTS,
        rng: random.Random | None = None,
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._min_interval_seconds = min_interval_seconds
        self._random_max_results = random_max_results
        self._rng = rng if rng is not None else random.Random()
        self._now = now if now is not None else (lambda: datetime.now(UTC))
        self._clock = clock
        self._sleep = sleep
        self._last_request_at = 0.0
        self._rate_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs) -> CatalogClient:
        return cls(
            timeout_seconds=config.request_timeout_seconds,
            user_agent=config.user_agent,
            min_interval_seconds=config.min_request_interval_seconds,
            random_max_results=config.random_max_results,
            **kwargs,
        )

    async def _wait_for_slot(self) -> None:
        async with self._rate_lock:
            self._last_request_at, waited = await enforce_rate_limit(
                last_request_at=self._last_request_at,
                min_interval_seconds=self._min_interval_seconds,
                now=self._clock,
                sleep=self._sleep,
            )
        if waited:
            logger.debug("Rate limited arXiv request by %.2fs", waited)

    async def _get(self, params: dict[str, str | int]) -> httpx.Response:
        headers = {"User-Agent": self._user_agent}
        if self._client is not None:
            return await self._client.get(
                self._api_url, params=params, headers=headers, timeout=self._timeout_seconds
            )
        async with httpx.AsyncClient() as tmp_client:
            return await tmp_client.get(
                self._api_url, params=params, headers=headers, timeout=self._timeout_seconds
            )

    async def fetch(self, query: str, max_results: int) -> list[Paper]:
        """Fetch and parse one page of results.

        Raises:
            NetworkError: On transport failure or a non-success status.
            ParseError: On a malformed feed, or when every entry is unusable.
        """
        await self._wait_for_slot()
        try:
            response = await self._get(build_search_params(query, max_results))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"arXiv API returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"arXiv API request failed: {e}") from e

        body = response.text
        papers = parse_atom_feed(body, now=self._now)
        if not papers:
            entry_count = count_feed_entries(body)
            if entry_count:
                raise ParseError(f"None of the {entry_count} feed entries could be parsed")
        return papers

    async def search(
        self, query: str, max_results: int = ARXIV_API_DEFAULT_MAX_RESULTS
    ) -> SearchOutcome:
        """Search the catalog; fall back to the offline corpus on any failure."""
        try:
            papers = await self.fetch(query, max_results)
        except CatalogError as e:
            logger.warning("arXiv search failed for %r, using offline corpus: %s", query, e)
            return SearchDegraded(papers=offline_papers(max_results, self._rng), reason=str(e))
        except Exception as e:
            logger.warning("Unexpected arXiv search failure for %r", query, exc_info=True)
            return SearchDegraded(papers=offline_papers(max_results, self._rng), reason=str(e))

        if not papers:
            logger.info("arXiv search for %r returned no results", query)
            return SearchEmpty()
        logger.debug("arXiv search for %r returned %d papers", query, len(papers))
        return SearchOk(papers=papers)

    async def surprise_me(self) -> SearchOutcome:
        return await self.search(random_topic_query(self._rng), self._random_max_results)


__all__ = [
    "ARXIV_API_URL",
    "CatalogClient",
    "SearchDegraded",
    "SearchEmpty",
    "SearchOk",
    "SearchOutcome",
    "build_search_params",
    "enforce_rate_limit",
    "keyword_query",
    "random_topic_query",
]
