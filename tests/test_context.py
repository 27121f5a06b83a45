"""Tests for snippet contexts."""

import os

import pytest
from lsprotocol import types as lsp
from pygls.workspace import TextDocument

from lsp_snippet import parse
from lsp_snippet.context import DocumentSnippetContext, MappingSnippetContext
from lsp_snippet.variables import STANDARD_VARIABLES, is_known_variable

SOURCE = "def foo():\n    return bar_baz\n"


def pos(line, character):
    return lsp.Position(line=line, character=character)


@pytest.fixture
def document():
    return TextDocument(uri="file:///home/user/project/main.py", source=SOURCE)


class TestDocumentSnippetContext:
    """Test the DocumentSnippetContext class."""

    def test_current_line(self, document):
        context = DocumentSnippetContext(document, pos(1, 13))
        assert context.resolve_variable("TM_CURRENT_LINE") == "    return bar_baz"

    def test_current_word(self, document):
        context = DocumentSnippetContext(document, pos(1, 13))
        assert context.resolve_variable("TM_CURRENT_WORD") == "bar_baz"

    def test_no_current_word(self, document):
        context = DocumentSnippetContext(document, pos(1, 2))
        assert context.resolve_variable("TM_CURRENT_WORD") is None

    def test_line_index_and_number(self, document):
        context = DocumentSnippetContext(document, pos(1, 0))
        assert context.resolve_variable("TM_LINE_INDEX") == "1"
        assert context.resolve_variable("TM_LINE_NUMBER") == "2"

    def test_selected_text(self, document):
        selection = lsp.Range(start=pos(0, 4), end=pos(0, 7))
        context = DocumentSnippetContext(document, pos(0, 7), selection)
        assert context.resolve_variable("TM_SELECTED_TEXT") == "foo"
        assert context.resolve_variable("TM_CURRENT_LINE") == "def foo():"

    def test_empty_selection(self, document):
        selection = lsp.Range(start=pos(0, 4), end=pos(0, 4))
        context = DocumentSnippetContext(document, pos(0, 4), selection)
        assert context.resolve_variable("TM_SELECTED_TEXT") is None

    def test_no_selection(self, document):
        context = DocumentSnippetContext(document, pos(0, 0))
        assert context.resolve_variable("TM_SELECTED_TEXT") is None

    def test_line_past_end(self, document):
        context = DocumentSnippetContext(document, pos(2, 0))
        assert context.resolve_variable("TM_CURRENT_LINE") == ""

    def test_unknown_variable(self, document):
        context = DocumentSnippetContext(document, pos(0, 0))
        assert context.resolve_variable("NOT_A_VARIABLE") is None

    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_file_variables(self, document):
        context = DocumentSnippetContext(document, pos(0, 0))
        assert context.resolve_variable("TM_FILEPATH") == "/home/user/project/main.py"
        assert context.resolve_variable("TM_FILENAME") == "main.py"
        assert context.resolve_variable("TM_FILENAME_BASE") == "main"
        assert context.resolve_variable("TM_DIRECTORY") == "/home/user/project"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_only_last_extension_is_removed(self):
        document = TextDocument(uri="file:///tmp/archive.tar.gz", source="")
        context = DocumentSnippetContext(document, pos(0, 0))
        assert context.resolve_variable("TM_FILENAME_BASE") == "archive.tar"

    def test_every_standard_variable_is_handled(self, document):
        assert set(DocumentSnippetContext._resolvers) == set(STANDARD_VARIABLES)

    def test_parse_with_document_context(self, document):
        context = DocumentSnippetContext(document, pos(1, 13))
        result = parse("${TM_CURRENT_WORD/(.*)/${1:/upcase}/} = $1", context)
        assert result.text == "BAR_BAZ = "


class TestMappingSnippetContext:
    def test_resolve(self):
        context = MappingSnippetContext({"TM_FILENAME": "a.txt"})
        assert context.resolve_variable("TM_FILENAME") == "a.txt"
        assert context.resolve_variable("TM_DIRECTORY") is None

    def test_empty(self):
        assert MappingSnippetContext().resolve_variable("TM_FILENAME") is None


class TestVariableCatalog:
    @pytest.mark.parametrize("name", sorted(STANDARD_VARIABLES))
    def test_known(self, name):
        assert is_known_variable(name)

    @pytest.mark.parametrize("name", ["abc", "tm_filename", "CLIPBOARD", ""])
    def test_unknown(self, name):
        assert not is_known_variable(name)
