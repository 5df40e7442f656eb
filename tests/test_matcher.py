"""Tests for search text matching."""

import threading

import pytest

from video_text_search.errors import ConfigurationError
from video_text_search.core.matcher import (
    SearchMatcher,
    normalize_ocr_text,
    normalize_search_text,
)


class TestNormalizeSearchText:
    """Tests for search argument normalization."""

    def test_strips_quotes(self):
        """Test trimming of surrounding quotes."""
        assert normalize_search_text('"hello world"') == "hello world"
        assert normalize_search_text("'hello'") == "hello"

    def test_keeps_inner_quotes(self):
        """Test that quotes inside the text are kept."""
        assert normalize_search_text('say "hi" now') == 'say "hi" now'

    def test_only_quotes(self):
        """Test that a quoted empty string becomes empty."""
        assert normalize_search_text('""') == ""


class TestNormalizeOcrText:
    """Tests for OCR text normalization."""

    def test_newlines_become_spaces(self):
        """Test collapsing of line breaks."""
        assert normalize_ocr_text("HELLO\nWORLD\n") == "HELLO WORLD"
        assert normalize_ocr_text("a\r\nb") == "a b"

    def test_tabs_become_spaces(self):
        """Test that tabs cannot break the tab-separated output."""
        assert normalize_ocr_text("a\tb") == "a b"

    def test_empty(self):
        """Test empty text."""
        assert normalize_ocr_text("") == ""
        assert normalize_ocr_text("\n\n") == ""


class TestSearchMatcher:
    """Tests for SearchMatcher."""

    def test_empty_query_rejected(self):
        """Test that an empty query is a configuration error."""
        with pytest.raises(ConfigurationError):
            SearchMatcher("")
        with pytest.raises(ConfigurationError):
            SearchMatcher('""')

    def test_case_insensitive(self):
        """Test case-insensitive containment."""
        matcher = SearchMatcher("hello")
        assert matcher.matches("HELLO")
        assert matcher.matches("Say Hello There")
        assert not matcher.matches("help")

    def test_empty_text_never_matches(self):
        """Test that empty OCR output does not match."""
        assert not SearchMatcher("x").matches("")

    def test_query_quotes_trimmed(self):
        """Test that the stored query has quotes removed."""
        assert SearchMatcher('"Exit"').query == "Exit"

    def test_match_count_thread_safe(self):
        """Test concurrent match counting."""
        matcher = SearchMatcher("x")

        def count():
            for _ in range(1000):
                matcher.record_match()

        threads = [threading.Thread(target=count) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert matcher.matched_count == 4000
