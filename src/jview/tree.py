"""Arena-backed JSON document tree with incrementally maintained line counts."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterable

from jview.errors import ParseError
from jview.tokens import NodeKind, Token, TokenType, tokenize

_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*\Z")


class ChildLineCounts:
    """Fenwick tree over the visible line counts of a container's children."""

    __slots__ = ("_tree", "_size", "_top")

    def __init__(self, counts: Iterable[int]) -> None:
        values = list(counts)
        n = len(values)
        tree = [0] * (n + 1)
        for i, v in enumerate(values, 1):
            tree[i] += v
            j = i + (i & -i)
            if j <= n:
                tree[j] += tree[i]
        self._tree = tree
        self._size = n
        top = 1
        while top * 2 <= n:
            top *= 2
        self._top = top

    def __len__(self) -> int:
        return self._size

    def add(self, index: int, delta: int) -> None:
        i = index + 1
        tree = self._tree
        n = self._size
        while i <= n:
            tree[i] += delta
            i += i & -i

    def prefix(self, index: int) -> int:
        """Sum of the first *index* children."""
        total = 0
        tree = self._tree
        i = index
        while i > 0:
            total += tree[i]
            i -= i & -i
        return total

    def find(self, offset: int) -> tuple[int, int]:
        """Return ``(child_index, offset_within_child)`` for a line offset.

        Every child counts at least one line, so the descent is well defined.
        """
        pos = 0
        rem = offset
        tree = self._tree
        n = self._size
        step = self._top
        while step:
            nxt = pos + step
            if nxt <= n and tree[nxt] <= rem:
                pos = nxt
                rem -= tree[nxt]
            step >>= 1
        return pos, rem


@dataclass(slots=True)
class Node:
    id: int
    kind: NodeKind
    parent: int | None
    index: int  # position in parent's children
    depth: int
    key: str | None = None
    text: str = ""  # raw literal for scalars
    start: int = 0
    end: int = 0
    last: int = 0  # id of the last node in this subtree (pre-order)
    children: list[int] = field(default_factory=list)
    collapsed: bool = False
    expanded_line_count: int = 1
    counts: ChildLineCounts | None = None


class DocumentTree:
    """Parsed JSON value stored as a flat arena of nodes.

    Node ids are assigned in document order, so ``a < b`` means node *a*
    starts before node *b*.  Content is immutable; only collapse flags change.
    """

    def __init__(self, nodes: list[Node], source: bytes = b"") -> None:
        self.nodes = nodes
        self.source = source
        self.root = 0

    # -- Construction ------------------------------------------------------

    @classmethod
    def from_source(cls, data: bytes | str) -> DocumentTree:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls.build(tokenize(data), data)

    @classmethod
    def build(cls, tokens: Iterable[Token], source: bytes = b"") -> DocumentTree:
        """Build a tree from a token stream.

        Raises ParseError for an unbalanced or out-of-place event; nothing is
        returned in that case.
        """
        nodes: list[Node] = []
        stack: list[int] = []
        pending_key: Token | None = None
        last_offset = 0

        def open_node(tok: Token) -> Node:
            nonlocal pending_key
            if stack:
                parent = nodes[stack[-1]]
                if parent.kind is NodeKind.OBJECT:
                    if pending_key is None:
                        raise ParseError("value without key", tok.start)
                    key = pending_key.text
                    pending_key = None
                else:
                    key = None
                node = Node(
                    id=len(nodes),
                    kind=tok.kind,
                    parent=parent.id,
                    index=len(parent.children),
                    depth=parent.depth + 1,
                    key=key,
                    start=tok.start,
                    end=tok.end,
                )
                parent.children.append(node.id)
            else:
                if nodes:
                    raise ParseError("multiple top-level values", tok.start)
                node = Node(
                    id=0, kind=tok.kind, parent=None, index=0, depth=0,
                    start=tok.start, end=tok.end,
                )
            node.last = node.id
            nodes.append(node)
            return node

        for tok in tokens:
            last_offset = tok.end
            if tok.type is TokenType.VALUE_START:
                if tok.kind is None or not tok.kind.is_container:
                    raise ParseError("container start without container kind", tok.start)
                node = open_node(tok)
                stack.append(node.id)
            elif tok.type is TokenType.KEY:
                if not stack or nodes[stack[-1]].kind is not NodeKind.OBJECT:
                    raise ParseError("key outside object", tok.start)
                if pending_key is not None:
                    raise ParseError("key without value", tok.start)
                pending_key = tok
            elif tok.type is TokenType.SCALAR:
                if tok.kind is None or tok.kind.is_container:
                    raise ParseError("scalar without scalar kind", tok.start)
                node = open_node(tok)
                node.text = tok.text
            else:
                if not stack:
                    raise ParseError("unbalanced container end", tok.start)
                if pending_key is not None:
                    raise ParseError("key without value", pending_key.start)
                node = nodes[stack.pop()]
                node.end = tok.end
                node.last = len(nodes) - 1
                _finish_container(nodes, node)

        if stack or not nodes:
            raise ParseError("unexpected end of input", last_offset)
        return cls(nodes, source)

    # -- Basic queries -----------------------------------------------------

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def is_collapsible(self, node_id: int) -> bool:
        """Non-empty containers are the only nodes with a collapse state."""
        return bool(self.nodes[node_id].children)

    def visible_lines(self, node_id: int) -> int:
        node = self.nodes[node_id]
        if not node.children or node.collapsed:
            return 1
        return node.expanded_line_count

    def total_lines(self) -> int:
        return self.visible_lines(self.root)

    # -- Navigation --------------------------------------------------------

    def parent(self, node_id: int) -> int | None:
        return self.nodes[node_id].parent

    def first_child(self, node_id: int) -> int | None:
        children = self.nodes[node_id].children
        return children[0] if children else None

    def last_child(self, node_id: int) -> int | None:
        children = self.nodes[node_id].children
        return children[-1] if children else None

    def next_sibling(self, node_id: int) -> int | None:
        node = self.nodes[node_id]
        if node.parent is None:
            return None
        siblings = self.nodes[node.parent].children
        if node.index + 1 < len(siblings):
            return siblings[node.index + 1]
        return None

    def prev_sibling(self, node_id: int) -> int | None:
        node = self.nodes[node_id]
        if node.parent is None or node.index == 0:
            return None
        return self.nodes[node.parent].children[node.index - 1]

    def ancestors(self, node_id: int) -> list[int]:
        """Proper ancestors, nearest first."""
        result = []
        parent = self.nodes[node_id].parent
        while parent is not None:
            result.append(parent)
            parent = self.nodes[parent].parent
        return result

    def contains(self, ancestor_id: int, node_id: int) -> bool:
        return ancestor_id <= node_id <= self.nodes[ancestor_id].last

    # -- Collapse ----------------------------------------------------------

    def toggle_collapse(self, node_id: int, recursive: bool = False) -> None:
        """Flip the collapse flag; scalars and empty containers are ignored."""
        if not self.is_collapsible(node_id):
            return
        self.set_collapsed(node_id, not self.nodes[node_id].collapsed, recursive)

    def set_collapsed(
        self, node_id: int, collapsed: bool, recursive: bool = False
    ) -> None:
        if not self.is_collapsible(node_id):
            return
        node = self.nodes[node_id]
        before = self.visible_lines(node_id)
        if recursive:
            # subtree는 pre-order로 연속된 id 구간
            nodes = self.nodes
            for i in range(node_id, node.last + 1):
                if nodes[i].children:
                    nodes[i].collapsed = collapsed
            self._recompute_range(node_id, node.last)
        else:
            if node.collapsed == collapsed:
                return
            node.collapsed = collapsed
        self._propagate(node_id, self.visible_lines(node_id) - before)

    def collapse_to_depth(self, depth: int) -> None:
        """Collapse every container at *depth* or deeper, expand the rest."""
        for node in self.nodes:
            if node.children:
                node.collapsed = node.depth >= depth
        self._recompute_range(self.root, len(self.nodes) - 1)

    def expand_all(self) -> None:
        for node in self.nodes:
            node.collapsed = False
        self._recompute_range(self.root, len(self.nodes) - 1)

    def _propagate(self, node_id: int, delta: int) -> None:
        """Patch ancestor counts after *node_id* changed its visible lines."""
        nodes = self.nodes
        node = nodes[node_id]
        while delta and node.parent is not None:
            parent = nodes[node.parent]
            parent.counts.add(node.index, delta)
            parent.expanded_line_count += delta
            if parent.collapsed:
                break
            node = parent

    def _recompute_range(self, first: int, last: int) -> None:
        # children have larger ids than their parent: reverse order is post-order
        nodes = self.nodes
        for i in range(last, first - 1, -1):
            node = nodes[i]
            if node.children:
                _finish_container(nodes, node)

    def recount(self, node_id: int | None = None) -> int:
        """Count visible lines from scratch, ignoring every cached count."""
        if node_id is None:
            node_id = self.root
        nodes = self.nodes
        last = nodes[node_id].last
        visible: dict[int, int] = {}
        for i in range(last, node_id - 1, -1):
            node = nodes[i]
            if not node.children or node.collapsed:
                visible[i] = 1
            else:
                visible[i] = 2 + sum(visible[c] for c in node.children)
        return visible[node_id]

    # -- Content -----------------------------------------------------------

    def child_count(self, node_id: int) -> int:
        return len(self.nodes[node_id].children)

    def value(self, node_id: int) -> object:
        """Materialize the subtree as Python data from the source bytes."""
        node = self.nodes[node_id]
        return json.loads(self.source[node.start : node.end])

    def path(self, node_id: int) -> str:
        """JSONPath-style location such as ``$.items[2].name``."""
        parts: list[str] = []
        node = self.nodes[node_id]
        while node.parent is not None:
            if node.key is not None:
                if _IDENT_RE.match(node.key):
                    parts.append(f".{node.key}")
                else:
                    parts.append(f"[{json.dumps(node.key, ensure_ascii=False)}]")
            else:
                parts.append(f"[{node.index}]")
            node = self.nodes[node.parent]
        return "$" + "".join(reversed(parts))


def _finish_container(nodes: list[Node], node: Node) -> None:
    """Recompute a container's line count from its children's current state."""
    if not node.children:
        node.expanded_line_count = 1
        node.counts = None
        return
    child_lines = []
    for cid in node.children:
        child = nodes[cid]
        if not child.children or child.collapsed:
            child_lines.append(1)
        else:
            child_lines.append(child.expanded_line_count)
    node.counts = ChildLineCounts(child_lines)
    node.expanded_line_count = 2 + sum(child_lines)
