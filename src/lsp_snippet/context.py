"""
Snippet contexts.

A context supplies the values of the recognized ``TM_*`` variables.
:class:`DocumentSnippetContext` derives them from a pygls text document and
the position where a completion is applied.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import TYPE_CHECKING, Mapping

from lsprotocol import types as lsp

from lsp_snippet import variables

if TYPE_CHECKING:
    from pygls.workspace import TextDocument

logger = logging.getLogger(__name__)


class MappingSnippetContext:
    """Resolves variables from a plain mapping."""

    def __init__(self, values: Mapping[str, str] | None = None):
        self.values = dict(values or {})

    def resolve_variable(self, name: str) -> str | None:
        return self.values.get(name)


class DocumentSnippetContext:
    """Resolves the standard variables for a position in a text document."""

    def __init__(
        self,
        document: TextDocument,
        position: lsp.Position,
        selection: lsp.Range | None = None,
    ):
        self.document = document
        self.position = position
        self.selection = selection

    def resolve_variable(self, name: str) -> str | None:
        resolver = self._resolvers.get(name)
        if resolver is None:
            return None
        value = resolver(self)
        logger.debug(f"Resolved snippet variable {name} = {value!r}")
        return value

    # -- Text at the position ------------------------------------------

    def selected_text(self) -> str | None:
        if self.selection is None or self.selection.start == self.selection.end:
            return None
        start = self.document.offset_at_position(self.selection.start)
        end = self.document.offset_at_position(self.selection.end)
        return self.document.source[start:end] or None

    def current_line(self) -> str | None:
        lines = self.document.lines
        line = self._line()
        if line >= len(lines):
            return "" if line == len(lines) else None
        return lines[line].rstrip("\r\n")

    def current_word(self) -> str | None:
        return self.document.word_at_position(self._cursor()) or None

    def line_index(self) -> str:
        return str(self._line())

    def line_number(self) -> str:
        return str(self._line() + 1)

    # -- Document path -------------------------------------------------

    def file_path(self) -> str | None:
        return self.document.path or None

    def file_name(self) -> str | None:
        path = self.file_path()
        if path is None:
            return None
        return PurePath(path).name

    def file_name_base(self) -> str | None:
        path = self.file_path()
        if path is None:
            return None
        # Only the last extension is removed: "archive.tar.gz" -> "archive.tar"
        return PurePath(path).stem

    def directory(self) -> str | None:
        path = self.file_path()
        if path is None:
            return None
        return str(PurePath(path).parent)

    def _cursor(self) -> lsp.Position:
        # The cursor sits at the start of the selection when there is one.
        if self.selection is not None:
            return self.selection.start
        return self.position

    def _line(self) -> int:
        return self._cursor().line

    _resolvers = {
        variables.TM_SELECTED_TEXT: selected_text,
        variables.TM_CURRENT_LINE: current_line,
        variables.TM_CURRENT_WORD: current_word,
        variables.TM_LINE_INDEX: line_index,
        variables.TM_LINE_NUMBER: line_number,
        variables.TM_FILENAME: file_name,
        variables.TM_FILENAME_BASE: file_name_base,
        variables.TM_DIRECTORY: directory,
        variables.TM_FILEPATH: file_path,
    }
