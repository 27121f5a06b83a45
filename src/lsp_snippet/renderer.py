"""
Rendering of a resolved snippet into text and linked tab stops.
"""

from __future__ import annotations

import logging

from lsp_snippet.nodes import TextNode, VariableNode
from lsp_snippet.resolver import Link, ResolvedModel
from lsp_snippet.snippet import Snippet, TabStop

logger = logging.getLogger(__name__)


class _Regions:
    """Offsets per index, definitions first."""

    def __init__(self):
        self.offsets: dict[str, list[int]] = {}

    def add(self, index: str, offset: int, definition: bool) -> None:
        offsets = self.offsets.setdefault(index, [])
        if definition:
            offsets.insert(0, offset)
        else:
            offsets.append(offset)

    def add_links(self, links: tuple[Link, ...], base: int, definition: bool) -> None:
        for link in links:
            self.add(link.index, base + link.offset, definition and link.definition)


def render(model: ResolvedModel) -> Snippet:
    """Flatten the resolved tree into text and compute every tab stop's offsets.

    Each occurrence of an index emits the index's resolved value. Any index
    spliced into that value is linked at the corresponding offset as well.
    """
    parts: list[str] = []
    regions = _Regions()
    offset = 0

    for node in model.tree:
        if isinstance(node, TextNode):
            text = node.text
        elif isinstance(node, VariableNode) and node in model.occurrences:
            value = model.occurrences[node]
            regions.add_links(value.links, offset, True)
            text = value.text
        else:
            value = model.values[node.index]
            definition = model.anchors.get(node.index) is node
            regions.add(node.index, offset, definition)
            regions.add_links(value.links, offset, definition)
            text = value.text
        parts.append(text)
        offset += len(text)

    tab_stops = [
        TabStop(index, tuple(offsets), tuple(model.choices(index)))
        for index, offsets in regions.offsets.items()
    ]
    tab_stops.sort(key=lambda t: (t.ordinal, t.offsets[0]))
    logger.debug(f"Rendered {offset} character(s) with {len(tab_stops)} tab stop(s)")
    return Snippet("".join(parts), tuple(tab_stops))
