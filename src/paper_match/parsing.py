"""arXiv Atom feed parsing into Paper records."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable
from datetime import UTC, datetime

from paper_match.errors import ParseError
from paper_match.models import DEFAULT_CATEGORY, Paper, PaperSource

logger = logging.getLogger(__name__)

# arXiv API / Atom parsing constants
ATOM_NS = {"atom": "http://www.w3.org/2005/Atom", "arxiv": "http://arxiv.org/schemas/atom"}
_FEED_TAG = f"{{{ATOM_NS['atom']}}}feed"

# Library-specific prefix removed from category tags (cs.AI -> AI)
CATEGORY_PREFIX = "cs."

ARXIV_ABS_URL = "https://arxiv.org/abs/{id}"
ARXIV_PDF_URL = "https://arxiv.org/pdf/{id}.pdf"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def extract_paper_id(raw_id: str) -> str:
    """Return the final path segment of an Atom ``<id>`` value.

    ``http://arxiv.org/abs/2401.12345v2`` -> ``2401.12345v2``
    """
    return raw_id.strip().rstrip("/").rsplit("/", 1)[-1].strip()


def normalize_categories(terms: list[str]) -> list[str]:
    """Strip the ``cs.`` prefix, uppercase, and de-duplicate in order.

    Returns ``[DEFAULT_CATEGORY]`` when no usable term is present.
    """
    categories: list[str] = []
    for term in terms:
        cleaned = term.strip().replace(CATEGORY_PREFIX, "").upper()
        if cleaned and cleaned not in categories:
            categories.append(cleaned)
    return categories or [DEFAULT_CATEGORY]


def parse_published(raw: str, now: Callable[[], datetime] = _utc_now) -> datetime:
    """Parse an ISO-8601 Atom timestamp; fall back to ``now()`` when unparsable."""
    cleaned = raw.strip()
    if not cleaned:
        return now()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        logger.debug("Unparsable published timestamp %r, using request time", raw)
        return now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _atom_text(node: ET.Element, path: str) -> str:
    """Extract whitespace-normalized text from an Atom XML node path."""
    found = node.find(path, ATOM_NS)
    if found is None or found.text is None:
        return ""
    return " ".join(found.text.split())


def _parse_entry(entry: ET.Element, now: Callable[[], datetime]) -> Paper | None:
    paper_id = extract_paper_id(_atom_text(entry, "atom:id"))
    title = _atom_text(entry, "atom:title")
    abstract = _atom_text(entry, "atom:summary")
    if not paper_id or not title or not abstract:
        return None

    authors = [
        " ".join(name.text.split())
        for name in entry.findall("atom:author/atom:name", ATOM_NS)
        if name.text and name.text.strip()
    ]
    terms = [category.get("term") or "" for category in entry.findall("atom:category", ATOM_NS)]

    return Paper(
        id=paper_id,
        title=title,
        abstract=abstract,
        authors=authors,
        published_date=parse_published(_atom_text(entry, "atom:published"), now),
        categories=normalize_categories(terms),
        source=PaperSource.ARXIV,
        url=ARXIV_ABS_URL.format(id=paper_id),
        pdf_url=ARXIV_PDF_URL.format(id=paper_id),
    )


def count_feed_entries(xml_text: str) -> int:
    """Count ``<entry>`` elements without building Paper records."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError:
        return 0
    return len(root.findall("atom:entry", ATOM_NS))


def parse_atom_feed(xml_text: str, now: Callable[[], datetime] = _utc_now) -> list[Paper]:
    """Parse an arXiv Atom feed into Paper objects.

    Entries missing an id, title, or summary are skipped without aborting
    the batch. Raises ParseError when the body is not an Atom feed at all.
    """
    if not xml_text.strip():
        raise ParseError("Empty arXiv API response")

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ParseError("Invalid arXiv API XML response") from exc

    if root.tag != _FEED_TAG:
        raise ParseError(f"Unexpected root element {root.tag!r}, expected an Atom feed")

    papers: list[Paper] = []
    seen_ids: set[str] = set()
    skipped = 0

    for entry in root.findall("atom:entry", ATOM_NS):
        paper = _parse_entry(entry, now)
        if paper is None:
            skipped += 1
            continue
        if paper.id in seen_ids:
            continue
        seen_ids.add(paper.id)
        papers.append(paper)

    if skipped:
        logger.debug("Skipped %d incomplete feed entries", skipped)
    return papers


__all__ = [
    "ARXIV_ABS_URL",
    "ARXIV_PDF_URL",
    "ATOM_NS",
    "CATEGORY_PREFIX",
    "count_feed_entries",
    "extract_paper_id",
    "normalize_categories",
    "parse_atom_feed",
    "parse_published",
]
