"""Parser for parenthesized, space-delimited symbol trees: ``(a (b c) d)``."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.errors import ParserError


@dataclass
class SymbolNode:
    """One parenthesized node: raw values and child nodes, both in input order."""

    values: list[str] = field(default_factory=list)
    children: list[SymbolNode] = field(default_factory=list)

    def find_child(self, tag: str) -> SymbolNode | None:
        """Return the first child whose first value is ``tag``."""
        for child in self.children:
            if child.values and child.values[0] == tag:
                return child
        return None


def parse_symbol_tree(text: str) -> SymbolNode:
    """Parse ``text`` (exactly one root node) into a :class:`SymbolNode` tree."""
    if not text or text[0] != "(" or text[-1] != ")":
        raise ParserError(f"Input not embedded in braces: {text[:80]}")

    holder = SymbolNode()
    pos = _parse_node(text, 1, holder)
    if pos != len(text):
        raise ParserError(f"Multiple root nodes in input: {text[:80]}")

    return holder.children[0]


def _parse_node(text: str, start: int, parent: SymbolNode) -> int:
    """Parse one node starting after its ``(``; return the index past its ``)``."""
    node = SymbolNode()
    parent.children.append(node)

    idx = start
    length = len(text)
    while idx < length:
        char = text[idx]
        if char == "(":
            if idx > start:
                node.values.append(text[start:idx])
            idx = start = _parse_node(text, idx + 1, node)
        elif char == ")":
            if idx > start:
                node.values.append(text[start:idx])
            return idx + 1
        elif char == " ":
            if idx > start:
                node.values.append(text[start:idx])
            idx += 1
            start = idx
        else:
            idx += 1

    raise ParserError(f"Invalid tree structure in input: {text[:80]}")
