"""Tests for applying snippet completion items."""

import logging
import os

import pytest
from lsprotocol import types as lsp
from pygls.workspace import TextDocument

from lsp_snippet.completion import expand_completion_item


def pos(line, character):
    return lsp.Position(line=line, character=character)


def rng(start_line, start_char, end_line, end_char):
    return lsp.Range(start=pos(start_line, start_char), end=pos(end_line, end_char))


@pytest.fixture
def document():
    return TextDocument(uri="file:///work/module.py", source="x = 1\nde\n")


class TestExpandCompletionItem:
    """Test expand_completion_item."""

    def test_snippet_expansion(self, document):
        item = lsp.CompletionItem(
            label="def",
            insert_text="def ${1:name}($2):\n    ${0:pass}",
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        edit = expand_completion_item(item, document, pos(1, 2))

        assert edit.expanded
        assert edit.new_text == "def name():\n    pass"
        assert edit.range == rng(1, 0, 1, 2)
        assert edit.text_edit == lsp.TextEdit(range=rng(1, 0, 1, 2), new_text=edit.new_text)
        assert [t.id for t in edit.tab_stops] == ["1", "2"]
        assert edit.cursor == pos(2, 4)

    def test_linked_ranges(self, document):
        item = lsp.CompletionItem(
            label="def",
            insert_text="def ${1:name}($2):\n    return $1",
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        edit = expand_completion_item(item, document, pos(1, 2))

        ranges = edit.linked_ranges()
        assert ranges["1"] == [rng(1, 4, 1, 8), rng(2, 11, 2, 15)]
        assert ranges["2"] == [rng(1, 9, 1, 9)]

    def test_exit_tab_stop_sets_cursor(self, document):
        item = lsp.CompletionItem(
            label="pair",
            insert_text="(${1:a}$0, ${2:b})",
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        edit = expand_completion_item(item, document, pos(1, 2))
        assert edit.new_text == "(a, b)"
        assert edit.cursor_offset == 2
        assert [t.id for t in edit.tab_stops] == ["1", "2"]
        assert "0" not in edit.linked_ranges()

    def test_cursor_at_end_without_exit_tab_stop(self, document):
        item = lsp.CompletionItem(
            label="print",
            insert_text="print(${1:x})",
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        edit = expand_completion_item(item, document, pos(1, 2))
        assert edit.cursor_offset == len("print(x)")
        assert edit.range == rng(1, 2, 1, 2)

    def test_plain_text_is_not_expanded(self, document):
        item = lsp.CompletionItem(
            label="dollar",
            insert_text="${1:x}",
            insert_text_format=lsp.InsertTextFormat.PlainText,
        )
        edit = expand_completion_item(item, document, pos(0, 0))
        assert not edit.expanded
        assert edit.new_text == "${1:x}"
        assert edit.tab_stops == []

    def test_label_is_default_text(self, document):
        item = lsp.CompletionItem(label="delete")
        edit = expand_completion_item(item, document, pos(1, 2))
        assert edit.new_text == "delete"
        assert edit.range == rng(1, 0, 1, 2)

    def test_selection_is_replaced(self, document):
        item = lsp.CompletionItem(
            label="wrap",
            insert_text="(${TM_SELECTED_TEXT})",
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        selection = rng(0, 4, 0, 5)
        edit = expand_completion_item(item, document, pos(0, 4), selection)
        assert edit.new_text == "(1)"
        assert edit.range == rng(0, 4, 0, 5)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_text_edit(self, document):
        item = lsp.CompletionItem(
            label="name",
            text_edit=lsp.TextEdit(range=rng(0, 0, 0, 1), new_text="${TM_FILENAME_BASE}_x"),
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        edit = expand_completion_item(item, document, pos(0, 1))
        assert edit.new_text == "module_x"
        assert edit.range == rng(0, 0, 0, 1)

    def test_insert_replace_edit(self, document):
        item = lsp.CompletionItem(
            label="value",
            text_edit=lsp.InsertReplaceEdit(
                new_text="value",
                insert=rng(0, 0, 0, 1),
                replace=rng(0, 0, 0, 5),
            ),
        )
        assert expand_completion_item(item, document, pos(0, 1)).range == rng(0, 0, 0, 1)
        assert expand_completion_item(item, document, pos(0, 1), overwrite=True).range == rng(0, 0, 0, 5)

    def test_cyclic_snippet_is_inserted_raw(self, document, caplog):
        item = lsp.CompletionItem(
            label="broken",
            insert_text="${1:$1}",
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        with caplog.at_level(logging.ERROR, logger="lsp_snippet.completion"):
            edit = expand_completion_item(item, document, pos(0, 0))

        assert not edit.expanded
        assert edit.new_text == "${1:$1}"
        assert edit.tab_stops == []
        assert edit.cursor_offset == len("${1:$1}")
        assert any("broken" in record.getMessage() for record in caplog.records)
