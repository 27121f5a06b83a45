"""
LSP Snippet Engine

Parses and evaluates snippets in the Language Server Protocol snippet
syntax, producing the expanded text together with linked tab stops.
"""

__version__ = "0.1.0"

from lsp_snippet.exceptions import SnippetException
from lsp_snippet.snippet import Snippet, SnippetContext, TabStop, parse

__all__ = ["parse", "Snippet", "SnippetContext", "SnippetException", "TabStop", "__version__"]
