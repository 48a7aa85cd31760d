"""Tests for arXiv Atom feed parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from paper_match.errors import ParseError
from paper_match.models import PaperSource
from paper_match.parsing import (
    count_feed_entries,
    extract_paper_id,
    normalize_categories,
    parse_atom_feed,
    parse_published,
)

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


class TestExtractPaperId:
    def test_final_path_segment(self) -> None:
        assert extract_paper_id("http://arxiv.org/abs/2401.12345v2") == "2401.12345v2"

    def test_old_style_id_keeps_last_segment(self) -> None:
        assert extract_paper_id("http://arxiv.org/abs/hep-th/9901001v1") == "9901001v1"

    def test_trailing_slash_and_whitespace(self) -> None:
        assert extract_paper_id("  http://arxiv.org/abs/2401.00001v1/ ") == "2401.00001v1"

    def test_empty(self) -> None:
        assert extract_paper_id("") == ""


class TestNormalizeCategories:
    def test_strips_prefix_and_uppercases(self) -> None:
        assert normalize_categories(["cs.AI", "cs.lg", "stat.ML"]) == ["AI", "LG", "STAT.ML"]

    def test_deduplicates_in_order(self) -> None:
        assert normalize_categories(["cs.CL", "cs.AI", "cs.CL"]) == ["CL", "AI"]

    def test_defaults_to_sentinel(self) -> None:
        assert normalize_categories([]) == ["AI"]
        assert normalize_categories(["", "  "]) == ["AI"]


class TestParsePublished:
    def test_zulu_timestamp(self) -> None:
        parsed = parse_published("2024-01-15T18:00:00Z", lambda: FIXED_NOW)
        assert parsed == datetime(2024, 1, 15, 18, 0, tzinfo=UTC)

    def test_naive_timestamp_gets_utc(self) -> None:
        parsed = parse_published("2024-01-15T18:00:00", lambda: FIXED_NOW)
        assert parsed.tzinfo is not None

    @pytest.mark.parametrize("raw", ["", "yesterday", "2024-13-45"])
    def test_unparsable_defaults_to_now(self, raw: str) -> None:
        assert parse_published(raw, lambda: FIXED_NOW) == FIXED_NOW


class TestParseAtomFeed:
    def test_parses_complete_entry(self, atom) -> None:
        papers = parse_atom_feed(atom.feed(atom.entry()), now=lambda: FIXED_NOW)

        assert len(papers) == 1
        paper = papers[0]
        assert paper.id == "2401.12345v1"
        assert paper.title == "Sparse Attention for Long Documents"
        assert paper.abstract == "We propose a sparse attention method."
        assert paper.authors == ["Alice Smith", "Bob Jones"]
        assert paper.categories == ["CL", "LG"]
        assert paper.source is PaperSource.ARXIV
        assert paper.url == "https://arxiv.org/abs/2401.12345v1"
        assert paper.pdf_url == "https://arxiv.org/pdf/2401.12345v1.pdf"
        assert paper.published_date == datetime(2024, 1, 15, 18, 0, tzinfo=UTC)
        assert paper.is_liked is False
        assert paper.is_read is False

    def test_normalizes_multiline_whitespace(self, atom) -> None:
        entry = atom.entry(title="  Deep\n   Residual\n Learning  ", summary="\n  line one\n line two ")
        paper = parse_atom_feed(atom.feed(entry))[0]
        assert paper.title == "Deep Residual Learning"
        assert paper.abstract == "line one line two"

    @pytest.mark.parametrize("missing", ["raw_id", "title", "summary"])
    def test_incomplete_entries_are_dropped(self, atom, missing: str) -> None:
        broken = atom.entry(**{missing: None})
        good = atom.entry(raw_id="http://arxiv.org/abs/2401.99999v1")

        papers = parse_atom_feed(atom.feed(broken, good))

        assert [p.id for p in papers] == ["2401.99999v1"]

    def test_missing_categories_default(self, atom) -> None:
        paper = parse_atom_feed(atom.feed(atom.entry(categories=())))[0]
        assert paper.categories == ["AI"]

    def test_missing_authors_is_empty_list(self, atom) -> None:
        paper = parse_atom_feed(atom.feed(atom.entry(authors=())))[0]
        assert paper.authors == []

    def test_unparsable_published_uses_now(self, atom) -> None:
        entry = atom.entry(published="not a date")
        paper = parse_atom_feed(atom.feed(entry), now=lambda: FIXED_NOW)[0]
        assert paper.published_date == FIXED_NOW

    def test_duplicate_ids_keep_first(self, atom) -> None:
        first = atom.entry(title="First")
        second = atom.entry(title="Second")
        papers = parse_atom_feed(atom.feed(first, second))
        assert [p.title for p in papers] == ["First"]

    def test_empty_feed_is_legitimately_empty(self, atom) -> None:
        assert parse_atom_feed(atom.feed()) == []

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_atom_feed("<feed><entry>")

    def test_blank_body_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_atom_feed("   ")

    def test_non_feed_root_raises(self) -> None:
        with pytest.raises(ParseError, match="Atom feed"):
            parse_atom_feed("<html><body>Service unavailable</body></html>")


def test_count_feed_entries(atom) -> None:
    assert count_feed_entries(atom.feed(atom.entry(), atom.entry(title=None))) == 2
    assert count_feed_entries("not xml") == 0
