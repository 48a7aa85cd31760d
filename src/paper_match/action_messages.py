"""User-facing copy builders for CLI notifications and errors."""

from __future__ import annotations

from paper_match.models import Paper


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def format_paper_line(paper: Paper, *, index: int | None = None) -> str:
    """One-line listing: ``[id] title (date) by authors``, with saved/read markers."""
    markers = ("*" if paper.is_liked else " ") + ("r" if paper.is_read else " ")
    prefix = f"{index:>3}. " if index is not None else ""
    authors = f" by {paper.authors_string}" if paper.authors else ""
    return f"{prefix}{markers} [{paper.id}] {paper.title} ({paper.formatted_date}){authors}"


def format_paper_count(count: int) -> str:
    return f"{count} paper{'s' if count != 1 else ''}"


__all__ = [
    "build_actionable_error",
    "build_next_step_hint",
    "format_paper_count",
    "format_paper_line",
]
