"""
Evaluated snippets.

:func:`parse` is the main entry point: it parses a snippet source, resolves
it against a variable resolver and renders the final text together with
the linked tab stops.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class TabStop:
    """A tab stop in an evaluated snippet.

    The first offset marks the definition of the tab stop, the others its
    mirrors and any place its value is displayed through another tab stop.
    Offsets are zero-based and relative to the start of the snippet text.

    Placeholders have a single value, choices have one value per option and
    bare tab stops have none.
    """

    id: str
    offsets: tuple[int, ...]
    values: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.id:
            raise ValueError("Tab stop id must not be empty")
        if not self.offsets:
            raise ValueError(f"Tab stop '{self.id}' must have at least one offset")

    @property
    def ordinal(self) -> int:
        """Numeric order of this tab stop; named tab stops come last."""
        return int(self.id) if self.id.isdigit() else sys.maxsize

    @property
    def value(self) -> str:
        """Default value, or an empty string for a bare tab stop."""
        return self.values[0] if self.values else ""


@dataclass(frozen=True)
class Snippet:
    """The text of an evaluated snippet and its tab stops, in ordinal order."""

    text: str
    tab_stops: tuple[TabStop, ...] = field(default_factory=tuple)

    @property
    def regions(self) -> dict[str, list[int]]:
        """Offsets of every tab stop, keyed by id."""
        return {tab_stop.id: list(tab_stop.offsets) for tab_stop in self.tab_stops}

    def get_tab_stop(self, id: str) -> TabStop | None:
        for tab_stop in self.tab_stops:
            if tab_stop.id == id:
                return tab_stop
        return None


@runtime_checkable
class SnippetContext(Protocol):
    """The environment a snippet is evaluated in."""

    def resolve_variable(self, name: str) -> str | None:
        """Return the value of a variable, or ``None`` if it is not set."""
        ...


VariableSource = Union[Callable[[str], Optional[str]], SnippetContext]


def parse(source: str, context: VariableSource) -> Snippet:
    """Parse and evaluate a snippet.

    Args:
        source: Snippet text in LSP snippet syntax.
        context: A ``name -> value | None`` callable or a
            :class:`SnippetContext` supplying recognized variables.

    Returns:
        The evaluated snippet.

    Raises:
        SnippetException: If tab stop defaults depend on each other cyclically.
    """
    from lsp_snippet.parser import parse_tree
    from lsp_snippet.renderer import render
    from lsp_snippet.resolver import resolve

    if isinstance(context, SnippetContext):
        resolve_variable = context.resolve_variable
    else:
        resolve_variable = context

    tree = parse_tree(source)
    model = resolve(tree, resolve_variable)
    return render(model)
