"""Case-insensitive search text matching."""

import re
import threading

from video_text_search.errors import ConfigurationError

QUOTE_CHARS = "\"'"

_WHITESPACE_RUN = re.compile(r"[\r\n\t]+")


def normalize_search_text(raw: str) -> str:
    """Trim surrounding quote characters from a search argument."""
    return (raw or "").strip(QUOTE_CHARS)


def normalize_ocr_text(text: str) -> str:
    """
    Collapse OCR output onto a single line.

    Runs of newlines and tabs become a single space so the text fits into
    one tab-separated ledger field.
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", text).strip()


class SearchMatcher:
    """
    Case-insensitive substring matcher with a thread-safe match counter.

    The query is validated once here; an empty query is a configuration
    error rather than a per-frame condition.
    """

    def __init__(self, query: str):
        query = normalize_search_text(query)
        if not query:
            raise ConfigurationError("The text to find cannot be empty.")

        self.query = query
        self._folded = query.casefold()
        self._matched = 0
        self._lock = threading.Lock()

    def matches(self, text: str) -> bool:
        """Check whether ``text`` contains the query, ignoring case."""
        if not text:
            return False
        return self._folded in text.casefold()

    def record_match(self) -> int:
        """Count one matched frame and return the new total."""
        with self._lock:
            self._matched += 1
            return self._matched

    @property
    def matched_count(self) -> int:
        with self._lock:
            return self._matched
