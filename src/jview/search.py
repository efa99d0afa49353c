"""Regex search over node content, independent of collapse state."""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from enum import Enum, auto

from jview.errors import SearchError
from jview.labels import MatchField, key_text, value_text
from jview.tree import DocumentTree


class Direction(Enum):
    FORWARD = auto()
    BACKWARD = auto()

    @property
    def reverse(self) -> Direction:
        return Direction.BACKWARD if self is Direction.FORWARD else Direction.FORWARD


@dataclass(frozen=True)
class SearchMatch:
    node: int
    field: MatchField
    start: int
    end: int


@dataclass
class SearchState:
    """Result set of one committed search and the position within it."""

    pattern: str
    regex: re.Pattern[str]
    direction: Direction
    matches: list[SearchMatch]
    current: int = 0
    wrapped: bool = False
    by_node: dict[int, list[int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.by_node = {}
        for i, m in enumerate(self.matches):
            self.by_node.setdefault(m.node, []).append(i)

    @property
    def current_match(self) -> SearchMatch:
        return self.matches[self.current]

    def spans_for(self, node_id: int) -> list[tuple[MatchField, int, int, bool]]:
        """``(field, start, end, is_current)`` for every match in a node."""
        spans = []
        for i in self.by_node.get(node_id, ()):
            m = self.matches[i]
            spans.append((m.field, m.start, m.end, i == self.current))
        return spans


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile with vim-style smartcase.

    ``\\c`` suffix forces ignore-case, ``\\C`` forces case-sensitive, and an
    all-lowercase pattern ignores case.
    """
    flags = 0
    if pattern.endswith("\\c"):
        pattern = pattern[:-2]
        flags = re.IGNORECASE
    elif pattern.endswith("\\C"):
        pattern = pattern[:-2]
    elif pattern.islower():
        flags = re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise SearchError(str(e)) from e


def scan(
    tree: DocumentTree, regex: re.Pattern[str], keys_only: bool = False
) -> list[SearchMatch]:
    """All non-empty matches in document order (key before value).

    With *keys_only* values are not searched.
    """
    matches: list[SearchMatch] = []
    append = matches.append
    for node in tree.nodes:
        if node.key is not None:
            for m in regex.finditer(key_text(node.key)):
                if m.end() > m.start():
                    append(SearchMatch(node.id, MatchField.KEY, m.start(), m.end()))
        if not keys_only and not node.kind.is_container:
            for m in regex.finditer(value_text(node)):
                if m.end() > m.start():
                    append(SearchMatch(node.id, MatchField.VALUE, m.start(), m.end()))
    return matches


def search(
    tree: DocumentTree,
    pattern: str,
    start_node: int,
    direction: Direction = Direction.FORWARD,
    keys_only: bool = False,
) -> SearchState | None:
    """Find the match nearest to *start_node* in *direction*.

    Returns None when the pattern matches nowhere.  Raises SearchError when
    the pattern does not compile.
    """
    regex = compile_pattern(pattern)
    matches = scan(tree, regex, keys_only)
    if not matches:
        return None
    state = SearchState(pattern, regex, direction, matches)
    nodes = [m.node for m in matches]
    if direction is Direction.FORWARD:
        i = bisect_right(nodes, start_node)
        if i < len(matches):
            state.current, state.wrapped = i, False
        else:
            state.current, state.wrapped = 0, True
    else:
        i = bisect_left(nodes, start_node)
        if i > 0:
            state.current, state.wrapped = i - 1, False
        else:
            state.current, state.wrapped = len(matches) - 1, True
    return state


def next_match(state: SearchState) -> SearchMatch:
    nxt = state.current + 1
    state.wrapped = nxt == len(state.matches)
    state.current = nxt % len(state.matches)
    return state.current_match


def prev_match(state: SearchState) -> SearchMatch:
    state.wrapped = state.current == 0
    state.current = (state.current - 1) % len(state.matches)
    return state.current_match


def step(state: SearchState, direction: Direction) -> SearchMatch:
    if direction is Direction.FORWARD:
        return next_match(state)
    return prev_match(state)


def reveal(tree: DocumentTree, node_id: int) -> list[int]:
    """Expand exactly the collapsed ancestors of *node_id*.

    Returns the expanded nodes, outermost first.
    """
    hidden = [a for a in tree.ancestors(node_id) if tree.nodes[a].collapsed]
    hidden.reverse()
    for a in hidden:
        tree.set_collapsed(a, False)
    return hidden


class SearchHistory:
    """Most-recent-first pattern history with up/down browsing."""

    def __init__(self, max_size: int = 50) -> None:
        self.items: list[str] = []
        self.max_size = max_size
        self.idx = -1

    def add(self, pattern: str) -> None:
        if not pattern:
            return
        if pattern in self.items:
            self.items.remove(pattern)
        self.items.insert(0, pattern)
        if len(self.items) > self.max_size:
            self.items.pop()
        self.idx = -1

    def prev(self) -> str | None:
        """Older entry, or None when already at the oldest."""
        if self.idx < len(self.items) - 1:
            self.idx += 1
            return self.items[self.idx]
        return None

    def next(self) -> str | None:
        """Newer entry; empty string when leaving the history."""
        if self.idx > 0:
            self.idx -= 1
            return self.items[self.idx]
        if self.idx == 0:
            self.idx = -1
            return ""
        return None

    def reset(self) -> None:
        self.idx = -1
