"""
Recursive-descent parser for the LSP snippet syntax.

The parser never fails: any ``$`` that does not start a well-formed tab stop,
choice or variable is kept as literal text and scanning resumes right after
it, so well-formed constructs nested inside a broken one are still found.
"""

from __future__ import annotations

import logging

from lsp_snippet.format_string import FormatString
from lsp_snippet.nodes import (
    MAX_NESTING,
    ChoiceNode,
    Node,
    TabStopNode,
    TextNode,
    VariableNode,
    is_digit,
    is_ident_part,
    is_ident_start,
    is_letter,
    normalize_index,
)
from lsp_snippet.transform import TransformError, compile_transform
from lsp_snippet.variables import is_known_variable

logger = logging.getLogger(__name__)

# Characters a backslash escapes in ordinary text and placeholder content.
DEFAULT_ESCAPES = frozenset("$}\\")
# Characters a backslash escapes inside the options of a choice.
CHOICE_ESCAPES = frozenset(",|\\")


class SnippetParser:
    """Parser for a single snippet source string."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        # start position of a "$" -> (parsed node or None, end position)
        self._constructs: dict[int, tuple[Node | None, int]] = {}
        # number of constructs currently being parsed
        self._depth = 0

    def parse(self) -> list[Node]:
        """Parse the whole source into a node sequence."""
        self.pos = 0
        nodes = self._parse_any(None)
        logger.debug(f"Parsed snippet into {len(nodes)} top-level node(s)")
        return nodes

    # ------------------------------------------------------------------
    # Text and content
    # ------------------------------------------------------------------

    def _parse_any(self, stop_char: str | None) -> list[Node]:
        nodes: list[Node] = []
        text: list[str] = []
        source = self.source
        while self.pos < len(source):
            ch = source[self.pos]
            if stop_char is not None and ch == stop_char:
                break
            if ch == "$":
                node = self._parse_construct()
                if node is not None:
                    if isinstance(node, TextNode):
                        text.append(node.text)
                        continue
                    if text:
                        nodes.append(TextNode("".join(text)))
                        text = []
                    nodes.append(node)
                    continue
            self.pos += 1
            if ch == "\\" and self.pos < len(source) and source[self.pos] in DEFAULT_ESCAPES:
                text.append(source[self.pos])
                self.pos += 1
                continue
            text.append(ch)
        if text:
            nodes.append(TextNode("".join(text)))
        return nodes

    def _parse_choice_value(self) -> str:
        value: list[str] = []
        source = self.source
        while self.pos < len(source):
            ch = source[self.pos]
            if ch in (",", "|"):
                break
            self.pos += 1
            if ch == "\\" and self.pos < len(source) and source[self.pos] in CHOICE_ESCAPES:
                value.append(source[self.pos])
                self.pos += 1
                continue
            value.append(ch)
        return "".join(value)

    # ------------------------------------------------------------------
    # Constructs introduced by "$"
    # ------------------------------------------------------------------

    def _parse_construct(self) -> Node | None:
        """Parse the construct starting at the current ``$``.

        On success the position moves past the construct; on failure it is
        left on the ``$``. Results are memoized by start position since a
        failed enclosing construct causes its content to be scanned again.
        A construct first reached at ``MAX_NESTING`` levels deep fails and
        stays literal text even if the scan later reaches it at a shallower level.
        """
        start = self.pos
        cached = self._constructs.get(start)
        if cached is None:
            if self._depth >= MAX_NESTING:
                logger.debug(f"Construct at {start} nested too deeply, keeping it as text")
                cached = (None, start)
            else:
                self._depth += 1
                self.pos += 1  # eat '$'
                if self._accept("{"):
                    node = self._parse_braced(start)
                else:
                    node = self._parse_simple()
                self._depth -= 1
                cached = (node, self.pos if node is not None else start)
            self._constructs[start] = cached
        node, end = cached
        self.pos = end
        return node

    def _parse_simple(self) -> Node | None:
        number = self._parse_int()
        if number is not None:
            return TabStopNode(number)
        name = self._parse_ident()
        if name is not None:
            return VariableNode(name, is_known_variable(name))
        return None

    def _parse_braced(self, start: int) -> Node | None:
        number = self._parse_int()
        if number is not None:
            return self._parse_braced_tab_stop(number)
        name = self._parse_ident()
        if name is not None:
            return self._parse_braced_variable(name, start)
        return None

    def _parse_braced_tab_stop(self, number: str) -> Node | None:
        if self._accept("}"):
            return TabStopNode(number)
        if self._accept(":"):
            content = self._parse_any("}")
            if self._accept("}"):
                return TabStopNode(number, content)
        elif self._accept("|"):
            options = [self._parse_choice_value()]
            while self._accept(","):
                options.append(self._parse_choice_value())
            if self._accept("|") and self._accept("}"):
                return ChoiceNode(number, options)
        return None

    def _parse_braced_variable(self, name: str, start: int) -> Node | None:
        known = is_known_variable(name)
        if self._accept("}"):
            return VariableNode(name, known)
        if self._accept(":"):
            content = self._parse_any("}")
            if self._accept("}"):
                return VariableNode(name, known, content=content)
        elif self._accept("/"):
            regex = self._parse_regex()
            if not self._accept("/"):
                return None
            format_string, self.pos = FormatString.parse(self.source, self.pos, "/")
            if not self._accept("/"):
                return None
            flags = self._parse_flags()
            if not self._accept("}"):
                return None
            span = self.source[start:self.pos]
            try:
                transform = compile_transform(regex, format_string, flags, span)
            except TransformError as e:
                logger.debug(f"Keeping transform as literal text: {e}")
                return TextNode(span)
            return VariableNode(name, known, transform=transform)
        return None

    def _parse_regex(self) -> str:
        regex: list[str] = []
        source = self.source
        while self.pos < len(source):
            ch = source[self.pos]
            if ch == "/":
                break
            self.pos += 1
            if ch == "\\" and self.pos < len(source):
                next_ch = source[self.pos]
                self.pos += 1
                # "\/" and "\\" are unescaped; other escapes belong to the regex itself.
                regex.append(next_ch if next_ch in ("/", "\\") else ch + next_ch)
                continue
            regex.append(ch)
        return "".join(regex)

    def _parse_flags(self) -> str:
        start = self.pos
        while self.pos < len(self.source) and is_letter(self.source[self.pos]):
            self.pos += 1
        return self.source[start:self.pos]

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def _parse_int(self) -> str | None:
        start = self.pos
        while self.pos < len(self.source) and is_digit(self.source[self.pos]):
            self.pos += 1
        if self.pos == start:
            return None
        return normalize_index(self.source[start:self.pos])

    def _parse_ident(self) -> str | None:
        source = self.source
        if self.pos >= len(source) or not is_ident_start(source[self.pos]):
            return None
        start = self.pos
        self.pos += 1
        while self.pos < len(source) and is_ident_part(source[self.pos]):
            self.pos += 1
        return source[start:self.pos]

    def _accept(self, ch: str) -> bool:
        if self.pos < len(self.source) and self.source[self.pos] == ch:
            self.pos += 1
            return True
        return False


def parse_tree(source: str) -> list[Node]:
    """Parse ``source`` into a node tree without resolving it."""
    return SnippetParser(source).parse()
