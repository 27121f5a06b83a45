"""
Applying snippet completion items.

Turns an LSP completion item into the edit an editor should make: the text
to insert, where the cursor ends up and which ranges of the inserted text
are linked tab stops. Snippet items are expanded with :func:`parse`; an item
whose snippet cannot be expanded is inserted verbatim.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from lsp_snippet.context import DocumentSnippetContext
from lsp_snippet.exceptions import SnippetException
from lsp_snippet.snippet import TabStop, parse

if TYPE_CHECKING:
    from pygls.workspace import TextDocument

logger = logging.getLogger(__name__)

EXIT_TAB_STOP = "0"

_WORD_PREFIX = re.compile(r"[A-Za-z_0-9]*$")


@dataclass
class ProposedEdit:
    """The outcome of applying a completion item to a document."""

    document: TextDocument
    range: lsp.Range
    new_text: str
    cursor_offset: int
    tab_stops: list[TabStop] = field(default_factory=list)
    expanded: bool = False

    @property
    def text_edit(self) -> lsp.TextEdit:
        return lsp.TextEdit(range=self.range, new_text=self.new_text)

    @property
    def cursor(self) -> lsp.Position:
        """Where the cursor goes once the snippet is inserted."""
        return self.position_of(self.cursor_offset)

    def position_of(self, offset: int) -> lsp.Position:
        """Document position of ``offset`` within the inserted text."""
        start = self.range.start
        before = self.new_text[:offset]
        newline = before.rfind("\n")
        codec = self.document.position_codec
        if newline < 0:
            return lsp.Position(
                line=start.line,
                character=start.character + codec.client_num_units(before),
            )
        return lsp.Position(
            line=start.line + before.count("\n"),
            character=codec.client_num_units(before[newline + 1:]),
        )

    def linked_ranges(self) -> dict[str, list[lsp.Range]]:
        """Document ranges of every tab stop occurrence, keyed by tab stop id."""
        result: dict[str, list[lsp.Range]] = {}
        for tab_stop in self.tab_stops:
            length = len(tab_stop.value)
            result[tab_stop.id] = [
                lsp.Range(start=self.position_of(offset), end=self.position_of(offset + length))
                for offset in tab_stop.offsets
            ]
        return result


def expand_completion_item(
    item: lsp.CompletionItem,
    document: TextDocument,
    position: lsp.Position,
    selection: lsp.Range | None = None,
    overwrite: bool = False,
) -> ProposedEdit:
    """Compute the edit for applying ``item`` at ``position`` in ``document``.

    Args:
        item: The completion item chosen by the user.
        document: The document the completion is applied to.
        position: The position completion was invoked at.
        selection: The current selection, if any.
        overwrite: For an ``InsertReplaceEdit``, use its replace range
            instead of its insert range.
    """
    new_text, edit_range = _replacement(item, document, position, selection, overwrite)

    tab_stops: list[TabStop] = []
    expanded = False
    cursor_offset: int | None = None
    if item.insert_text_format == lsp.InsertTextFormat.Snippet:
        context = DocumentSnippetContext(document, position, selection)
        try:
            snippet = parse(new_text, context)
        except SnippetException as e:
            logger.error(f"Cannot expand snippet of completion item '{item.label}': {e}")
        else:
            new_text = snippet.text
            exit_stop = snippet.get_tab_stop(EXIT_TAB_STOP)
            if exit_stop is not None:
                cursor_offset = exit_stop.offsets[0]
            tab_stops = [t for t in snippet.tab_stops if t is not exit_stop]
            expanded = True

    if cursor_offset is None:
        cursor_offset = len(new_text)

    return ProposedEdit(
        document=document,
        range=edit_range,
        new_text=new_text,
        cursor_offset=cursor_offset,
        tab_stops=tab_stops,
        expanded=expanded,
    )


def _replacement(
    item: lsp.CompletionItem,
    document: TextDocument,
    position: lsp.Position,
    selection: lsp.Range | None,
    overwrite: bool,
) -> tuple[str, lsp.Range]:
    text_edit = item.text_edit
    if isinstance(text_edit, lsp.InsertReplaceEdit):
        edit_range = text_edit.replace if overwrite else text_edit.insert
        return text_edit.new_text, edit_range
    if isinstance(text_edit, lsp.TextEdit):
        return text_edit.new_text, text_edit.range

    text = item.insert_text if item.insert_text is not None else item.label
    end = selection.end if selection is not None else position
    start = position
    prefix = _word_prefix(document, position)
    if prefix and text.startswith(prefix):
        codec = document.position_codec
        start = lsp.Position(
            line=position.line,
            character=position.character - codec.client_num_units(prefix),
        )
    return text, lsp.Range(start=start, end=end)


def _word_prefix(document: TextDocument, position: lsp.Position) -> str:
    lines = document.lines
    if position.line >= len(lines):
        return ""
    local = document.position_codec.position_from_client_units(lines, position)
    line = lines[position.line][:local.character]
    match = _WORD_PREFIX.search(line)
    return match.group(0) if match else ""
