"""Filtering and sorting helpers for the saved-paper library."""

from __future__ import annotations

from rapidfuzz import fuzz

from paper_match.models import LIBRARY_SORT_OPTIONS, Paper

# Fuzzy fallback only kicks in for queries at least this long
FUZZY_MIN_QUERY_LENGTH = 3
FUZZY_SCORE_CUTOFF = 70


def _haystacks(paper: Paper) -> tuple[str, ...]:
    return (paper.title, paper.authors_string, "".join(paper.categories))


def filter_papers(papers: list[Paper], text: str) -> list[Paper]:
    """Filter papers by title, authors, or categories.

    Case-insensitive substring matching first; if nothing matches, falls
    back to rapidfuzz WRatio over title + authors, best matches first.
    """
    query = text.strip().lower()
    if not query:
        return list(papers)

    matches = [p for p in papers if any(query in field.lower() for field in _haystacks(p))]
    if matches or len(query) < FUZZY_MIN_QUERY_LENGTH:
        return matches

    scored: list[tuple[Paper, float]] = []
    for paper in papers:
        score = fuzz.WRatio(query, f"{paper.title} {paper.authors_string}".lower())
        if score >= FUZZY_SCORE_CUTOFF:
            scored.append((paper, score))
    scored.sort(key=lambda x: x[1], reverse=True)
    return [p for p, _ in scored]


def sort_papers(papers: list[Paper], sort_key: str) -> list[Paper]:
    """Sort papers by the given key, returning a new list.

    Args:
        papers: Papers in saved (date added) order.
        sort_key: One of LIBRARY_SORT_OPTIONS.
    """
    if sort_key == "title":
        return sorted(papers, key=lambda p: p.title.lower())
    elif sort_key == "author":
        return sorted(papers, key=lambda p: p.authors_string.lower())
    elif sort_key == "published":
        return sorted(papers, key=lambda p: p.published_date, reverse=True)
    return list(papers)


__all__ = [
    "FUZZY_SCORE_CUTOFF",
    "LIBRARY_SORT_OPTIONS",
    "filter_papers",
    "sort_papers",
]
