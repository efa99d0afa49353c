"""Logical line index over a DocumentTree's current collapse state."""

from __future__ import annotations

from enum import Enum, auto
from itertools import islice
from typing import Iterator, NamedTuple

from jview.tree import DocumentTree, Node


class LineRole(Enum):
    VALUE = auto()  # scalar, key:scalar or empty container
    OPEN = auto()
    SUMMARY = auto()  # collapsed container
    CLOSE = auto()


class Line(NamedTuple):
    number: int
    node: int
    role: LineRole
    depth: int


class LineIndex:
    """Maps logical line numbers to nodes without enumerating the document.

    Lookups descend from the root using each container's child line counts,
    so they cost O(depth * log fan-out) regardless of the line number.
    """

    def __init__(self, tree: DocumentTree) -> None:
        self.tree = tree

    def total(self) -> int:
        return self.tree.total_lines()

    def resolve(self, line: int) -> Line:
        total = self.total()
        if not 0 <= line < total:
            raise IndexError(f"line {line} out of range (0..{total - 1})")
        nodes = self.tree.nodes
        node = nodes[self.tree.root]
        offset = line
        while True:
            if not node.children or node.collapsed:
                assert offset == 0, f"line {line} resolved inside a leaf line"
                role = LineRole.SUMMARY if node.children else LineRole.VALUE
                return Line(line, node.id, role, node.depth)
            if offset == 0:
                return Line(line, node.id, LineRole.OPEN, node.depth)
            if offset == node.expanded_line_count - 1:
                return Line(line, node.id, LineRole.CLOSE, node.depth)
            idx, offset = node.counts.find(offset - 1)
            assert idx < len(node.children), f"line {line} past node {node.id}"
            node = nodes[node.children[idx]]

    def iter_lines(self, start: int = 0) -> Iterator[Line]:
        """Yield lines from *start* to the end of the document."""
        if start >= self.total():
            return
        line: Line | None = self.resolve(max(0, start))
        while line is not None:
            yield line
            line = self._next(line)

    def window(self, start: int, count: int) -> list[Line]:
        """Return up to *count* consecutive lines starting at *start*."""
        if count <= 0:
            return []
        return list(islice(self.iter_lines(start), count))

    def _first_line(self, node: Node, number: int) -> Line:
        if not node.children:
            role = LineRole.VALUE
        elif node.collapsed:
            role = LineRole.SUMMARY
        else:
            role = LineRole.OPEN
        return Line(number, node.id, role, node.depth)

    def _next(self, line: Line) -> Line | None:
        nodes = self.tree.nodes
        node = nodes[line.node]
        if line.role is LineRole.OPEN:
            return self._first_line(nodes[node.children[0]], line.number + 1)
        if node.parent is None:
            return None
        parent = nodes[node.parent]
        if node.index + 1 < len(parent.children):
            sibling = nodes[parent.children[node.index + 1]]
            return self._first_line(sibling, line.number + 1)
        return Line(line.number + 1, parent.id, LineRole.CLOSE, parent.depth)

    def is_visible(self, node_id: int) -> bool:
        nodes = self.tree.nodes
        parent = nodes[node_id].parent
        while parent is not None:
            if nodes[parent].collapsed:
                return False
            parent = nodes[parent].parent
        return True

    def visible_anchor(self, node_id: int) -> int:
        """Outermost collapsed ancestor of *node_id*, or the node itself."""
        nodes = self.tree.nodes
        anchor = node_id
        parent = nodes[node_id].parent
        while parent is not None:
            if nodes[parent].collapsed:
                anchor = parent
            parent = nodes[parent].parent
        return anchor

    def line_of(self, node_id: int) -> int:
        """Line holding the node's value, open bracket or summary."""
        assert self.is_visible(node_id), f"node {node_id} is hidden"
        nodes = self.tree.nodes
        node = nodes[node_id]
        line = 0
        while node.parent is not None:
            parent = nodes[node.parent]
            line += 1 + parent.counts.prefix(node.index)
            node = parent
        return line

    def close_line_of(self, node_id: int) -> int:
        """Last line of the node (its closing bracket when expanded)."""
        return self.line_of(node_id) + self.tree.visible_lines(node_id) - 1
