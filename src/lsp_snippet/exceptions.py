"""Snippet errors."""

from __future__ import annotations


class SnippetException(Exception):
    """Raised when a snippet cannot be expanded.

    The only such case is a cyclic default-value dependency between tab
    stops; every other malformed construct degrades to literal text.
    """

    def __init__(self, message: str, index: str | None = None):
        super().__init__(message)
        self.index = index
