"""
Parsed snippet tree.

A snippet source is parsed into an ordered sequence of nodes. Tab stops,
choices and variables share a single keyspace of string indices: numeric
tab stops are keyed by their normalized digit run, variables by name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from lsp_snippet.format_string import FormatString

# Constructs nested deeper than this are kept as literal text.
MAX_NESTING = 64


@dataclass(frozen=True, eq=False)
class TextNode:
    """Literal text, already unescaped."""

    text: str


@dataclass(frozen=True, eq=False)
class TabStopNode:
    """``$1``, ``${1}`` or ``${1:placeholder}``.

    ``content`` is ``None`` for a bare tab stop (a mirror unless some other
    occurrence defines it) and a node sequence for a placeholder.
    """

    index: str
    content: list[Node] | None = None

    @property
    def is_definition(self) -> bool:
        return self.content is not None


@dataclass(frozen=True, eq=False)
class ChoiceNode:
    """``${1|one,two,three|}``; the first option is the default value."""

    index: str
    options: list[str] = field(default_factory=list)

    @property
    def is_definition(self) -> bool:
        return True


@dataclass(frozen=True)
class Transform:
    """Compiled ``/regex/format/flags`` substitution attached to a variable."""

    pattern: re.Pattern
    format: FormatString
    flags: str
    source: str

    @property
    def is_global(self) -> bool:
        return "g" in self.flags


@dataclass(frozen=True, eq=False)
class VariableNode:
    """``$NAME``, ``${NAME}``, ``${NAME:default}`` or ``${NAME/re/fmt/flags}``.

    ``known`` records whether the name belongs to the recognized variable
    catalog at parse time; unknown variables behave like named tab stops.
    """

    name: str
    known: bool
    content: list[Node] | None = None
    transform: Transform | None = None

    @property
    def index(self) -> str:
        return self.name

    @property
    def is_definition(self) -> bool:
        # Transformed occurrences display a derived value, never the index's own.
        return self.content is not None and self.transform is None


Node = Union[TextNode, TabStopNode, ChoiceNode, VariableNode]
IndexedNode = Union[TabStopNode, ChoiceNode, VariableNode]


def normalize_index(digits: str) -> str:
    """Strip leading zeros from a tab stop number, keeping a single ``0``."""
    stripped = digits.lstrip("0")
    return stripped or "0"


def iter_nodes(nodes: list[Node]):
    """Yield every node depth-first in document order, parents first."""
    for node in nodes:
        yield node
        content = getattr(node, "content", None)
        if content is not None:
            yield from iter_nodes(content)


def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def is_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_ident_start(ch: str) -> bool:
    return is_letter(ch) or ch == "_"


def is_ident_part(ch: str) -> bool:
    return is_ident_start(ch) or is_digit(ch)
