"""
Resolution of tab stop and variable values.

Every index in the parsed tree gets exactly one value. The authoritative
definition of an index is the first node, in depth-first document order,
that carries content for it (a placeholder, a choice or an unrecognized
variable with a default). Values are resolved depth-first with memoization;
meeting an index whose resolution is still in progress means the
definitions form a cycle.

Each resolved value also records where other indices' values were spliced
into it, so the renderer can link every position that ultimately displays
an index, including positions reached only through containment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from lsp_snippet.exceptions import SnippetException
from lsp_snippet.nodes import (
    ChoiceNode,
    IndexedNode,
    Node,
    TabStopNode,
    TextNode,
    VariableNode,
    iter_nodes,
)
from lsp_snippet.transform import apply_transform

logger = logging.getLogger(__name__)

VariableResolver = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class Link:
    """An index whose value appears at ``offset`` inside another value.

    ``definition`` is true when the occurrence is reached only through
    authoritative definitions, i.e. it is not part of any mirror.
    """

    offset: int
    index: str
    definition: bool


@dataclass(frozen=True)
class ResolvedValue:
    text: str = ""
    links: tuple[Link, ...] = ()


@dataclass
class ResolvedModel:
    """Output of :class:`SnippetResolver`, input of the renderer."""

    tree: list[Node]
    values: dict[str, ResolvedValue]
    definitions: dict[str, IndexedNode]
    anchors: dict[str, IndexedNode]
    # Values of top-level occurrences that are not a plain index reference:
    # recognized variables and transformed variables.
    occurrences: dict[Node, ResolvedValue] = field(default_factory=dict)

    def value(self, index: str) -> str:
        return self.values[index].text

    def choices(self, index: str) -> list[str]:
        """Default values offered for ``index``, in order."""
        definition = self.definitions.get(index)
        if isinstance(definition, ChoiceNode):
            return list(definition.options)
        if definition is not None:
            return [self.values[index].text]
        anchor = self.anchors.get(index)
        if isinstance(anchor, VariableNode):
            return [anchor.name]
        return []


class SnippetResolver:
    """Resolves a parsed snippet tree against a variable resolver."""

    def __init__(self, tree: list[Node], resolve_variable: VariableResolver):
        self.tree = tree
        self._resolve_variable = resolve_variable
        self._variables: dict[str, str | None] = {}
        self._definitions: dict[str, IndexedNode] = {}
        self._anchors: dict[str, IndexedNode] = {}
        self._indices: list[str] = []
        self._registered: set[str] = set()
        self._values: dict[str, ResolvedValue] = {}
        self._in_progress: set[str] = set()
        self._collect()

    def resolve(self) -> ResolvedModel:
        """Resolve every index and every top-level variable occurrence.

        Raises:
            SnippetException: If tab stop definitions depend on each other
                cyclically.
        """
        for index in self._indices:
            self._resolve_index(index)

        occurrences: dict[Node, ResolvedValue] = {}
        for node in self.tree:
            if isinstance(node, VariableNode) and (node.known or node.transform is not None):
                occurrences[node] = self._resolve_variable_node(node)

        logger.debug(f"Resolved {len(self._values)} index value(s)")
        return ResolvedModel(
            tree=self.tree,
            values=dict(self._values),
            definitions=dict(self._definitions),
            anchors=dict(self._anchors),
            occurrences=occurrences,
        )

    # ------------------------------------------------------------------
    # Definition table
    # ------------------------------------------------------------------

    def _collect(self) -> None:
        for node in iter_nodes(self.tree):
            if isinstance(node, TextNode):
                continue
            if isinstance(node, VariableNode) and node.known:
                continue
            index = node.index
            if index not in self._registered:
                self._registered.add(index)
                self._indices.append(index)
            if node.is_definition and index not in self._definitions:
                self._definitions[index] = node

        for node in iter_nodes(self.tree):
            if not isinstance(node, (TabStopNode, ChoiceNode, VariableNode)):
                continue
            if isinstance(node, VariableNode) and (node.known or node.transform is not None):
                continue
            index = node.index
            if index in self._anchors:
                continue
            if index in self._definitions:
                self._anchors[index] = self._definitions[index]
            elif isinstance(node, VariableNode):
                # With no content anywhere the first occurrence is the definition.
                self._anchors[index] = node

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _resolve_index(self, index: str) -> ResolvedValue:
        """Resolve ``index`` after every index its definition depends on.

        Dependencies are walked depth-first with an explicit stack, so long
        chains of definitions do not exhaust the interpreter stack.
        """
        value = self._values.get(index)
        if value is not None:
            return value

        self._in_progress.add(index)
        stack = [(index, iter(self._dependencies(index)))]
        while stack:
            current, pending = stack[-1]
            for dependency in pending:
                if dependency in self._values:
                    continue
                if dependency in self._in_progress:
                    raise SnippetException(f"Cyclic reference to tab stop '{dependency}'", dependency)
                self._in_progress.add(dependency)
                stack.append((dependency, iter(self._dependencies(dependency))))
                break
            else:
                stack.pop()
                self._in_progress.discard(current)
                self._values[current] = self._compute_value(current)
        return self._values[index]

    def _compute_value(self, index: str) -> ResolvedValue:
        # Every dependency of ``index`` is resolved at this point.
        definition = self._definitions.get(index)
        if isinstance(definition, ChoiceNode):
            return ResolvedValue(definition.options[0])
        if definition is not None:
            return self._resolve_content(definition.content)
        if not index.isdigit():
            # An unrecognized variable nobody gives content to shows its name.
            return ResolvedValue(index)
        return ResolvedValue()

    def _dependencies(self, index: str) -> list[str]:
        definition = self._definitions.get(index)
        if definition is None or isinstance(definition, ChoiceNode):
            return []
        return self._content_dependencies(definition.content)

    def _content_dependencies(self, nodes: list[Node]) -> list[str]:
        """Indices whose values ``_resolve_content(nodes)`` splices in."""
        dependencies: list[str] = []
        for node in nodes:
            if isinstance(node, TextNode):
                continue
            if isinstance(node, VariableNode) and node.known:
                # Only an unset recognized variable falls back to its default.
                if node.transform is None and node.content is not None and self._lookup(node.name) is None:
                    dependencies.extend(self._content_dependencies(node.content))
            else:
                dependencies.append(node.index)
        return dependencies

    def _resolve_content(self, nodes: list[Node]) -> ResolvedValue:
        parts: list[str] = []
        links: list[Link] = []
        offset = 0
        for node in nodes:
            if isinstance(node, TextNode):
                parts.append(node.text)
                offset += len(node.text)
                continue

            if isinstance(node, VariableNode) and (node.known or node.transform is not None):
                value = self._resolve_variable_node(node)
                links.extend(
                    Link(offset + link.offset, link.index, link.definition)
                    for link in value.links
                )
            else:
                value = self._resolve_index(node.index)
                is_definition = self._anchors.get(node.index) is node
                links.append(Link(offset, node.index, is_definition))
                links.extend(
                    Link(offset + link.offset, link.index, is_definition and link.definition)
                    for link in value.links
                )
            parts.append(value.text)
            offset += len(value.text)
        return ResolvedValue("".join(parts), tuple(links))

    def _resolve_variable_node(self, node: VariableNode) -> ResolvedValue:
        if not node.known:
            # Transformed occurrence of a named tab stop: derived text, no links.
            base = self._resolve_index(node.index).text
            return ResolvedValue(apply_transform(node.transform, base))

        value = self._lookup(node.name)
        if node.transform is not None:
            return ResolvedValue(apply_transform(node.transform, value or ""))
        if value is not None:
            return ResolvedValue(value)
        if node.content is not None:
            return self._resolve_content(node.content)
        return ResolvedValue()

    def _lookup(self, name: str) -> str | None:
        if name not in self._variables:
            self._variables[name] = self._resolve_variable(name)
        return self._variables[name]


def resolve(tree: list[Node], resolve_variable: VariableResolver) -> ResolvedModel:
    """Resolve ``tree``; see :class:`SnippetResolver`."""
    return SnippetResolver(tree, resolve_variable).resolve()
