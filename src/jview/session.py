"""Viewer state and the actions the key handler applies to it."""

from __future__ import annotations

import re

from jview.config import ViewerConfig
from jview.errors import SearchError
from jview.labels import key_text
from jview.lines import LineIndex, LineRole
from jview.render import Renderer, compose_line
from jview.search import (
    Direction,
    SearchHistory,
    SearchMatch,
    SearchState,
    reveal,
    search,
    step,
)
from jview.tree import DocumentTree
from jview.viewport import Viewport
from jview.width import text_width


class ViewerSession:
    """One loaded document plus everything the interaction loop mutates."""

    def __init__(self, tree: DocumentTree, config: ViewerConfig | None = None) -> None:
        self.tree = tree
        self.config = config or ViewerConfig()
        if self.config.collapse_depth is not None:
            tree.collapse_to_depth(self.config.collapse_depth)
        self.index = LineIndex(tree)
        self.viewport = Viewport(self.index, scrolloff=self.config.scrolloff)
        self.renderer = Renderer(tree, self.index, self.config.theme, self.config.indent)
        self.status_msg: str = ""
        self.quit_requested: bool = False
        # Search state
        self.search_state: SearchState | None = None
        self.search_buffer: str = ""
        self.search_direction: Direction = Direction.FORWARD
        self.last_pattern: str = ""
        self.last_direction: Direction = Direction.FORWARD
        self.last_keys_only: bool = False  # set by */#
        self.history = SearchHistory()

    @classmethod
    def from_source(
        cls, data: bytes | str, config: ViewerConfig | None = None
    ) -> ViewerSession:
        return cls(DocumentTree.from_source(data), config)

    @property
    def cursor(self) -> int:
        return self.viewport.cursor

    def cursor_path(self) -> str:
        return self.tree.path(self.viewport.cursor)

    # -- Movement ----------------------------------------------------------

    def cursor_down(self) -> None:
        for line in self.index.iter_lines(self.viewport.cursor_line + 1):
            if line.role is not LineRole.CLOSE:
                self.viewport.set_cursor(line.node)
                return

    def cursor_up(self) -> None:
        number = self.viewport.cursor_line - 1
        while number >= 0:
            line = self.index.resolve(number)
            if line.role is not LineRole.CLOSE:
                self.viewport.set_cursor(line.node)
                return
            number -= 1

    def next_sibling(self) -> None:
        sibling = self.tree.next_sibling(self.viewport.cursor)
        if sibling is not None:
            self.viewport.set_cursor(sibling)

    def prev_sibling(self) -> None:
        sibling = self.tree.prev_sibling(self.viewport.cursor)
        if sibling is not None:
            self.viewport.set_cursor(sibling)

    def parent(self) -> None:
        parent = self.tree.parent(self.viewport.cursor)
        if parent is not None:
            self.viewport.set_cursor(parent)

    def first_child(self) -> None:
        """Move into the cursor node, expanding it first when collapsed."""
        node = self.tree.nodes[self.viewport.cursor]
        if not node.children:
            return
        if node.collapsed:
            self.tree.set_collapsed(node.id, False)
        self.viewport.set_cursor(node.children[0])

    def collapse_or_parent(self) -> None:
        """Collapse an expanded container, otherwise move to the parent."""
        node = self.tree.nodes[self.viewport.cursor]
        if node.children and not node.collapsed:
            self.tree.set_collapsed(node.id, True)
            self.viewport.sync()
        else:
            self.parent()

    def document_start(self) -> None:
        self.viewport.set_cursor(self.tree.root)

    def document_end(self) -> None:
        self.viewport.cursor_to_line(self.index.total() - 1, forward=False)
        self.viewport.sync()

    # -- Collapse ----------------------------------------------------------

    def toggle_collapse(self) -> None:
        self.tree.toggle_collapse(self.viewport.cursor)
        self.viewport.sync()

    def toggle_collapse_recursive(self) -> None:
        self.tree.toggle_collapse(self.viewport.cursor, recursive=True)
        self.viewport.sync()

    # -- Scrolling ---------------------------------------------------------

    def scroll_down(self) -> None:
        self.viewport.scroll(1)

    def scroll_up(self) -> None:
        self.viewport.scroll(-1)

    def page_down(self) -> None:
        self.viewport.page_down()

    def page_up(self) -> None:
        self.viewport.page_up()

    def half_page_down(self) -> None:
        self.viewport.move_cursor_lines(max(1, self.viewport.height // 2))

    def half_page_up(self) -> None:
        self.viewport.move_cursor_lines(-max(1, self.viewport.height // 2))

    def _h_scroll_limit(self) -> int:
        vp = self.viewport
        widest = self.renderer.max_line_width(self.index.window(vp.top, vp.height))
        return max(0, widest - vp.width)

    def scroll_left(self) -> None:
        self.viewport.horizontal_scroll(-self.config.h_scroll_step)

    def scroll_right(self) -> None:
        self.viewport.horizontal_scroll(
            self.config.h_scroll_step, self._h_scroll_limit()
        )

    # -- Search input --------------------------------------------------------

    def begin_search(self, direction: Direction) -> None:
        self.search_buffer = ""
        self.search_direction = direction
        self.history.reset()
        self.status_msg = ""

    def search_append(self, char: str) -> None:
        self.search_buffer += char
        self.history.reset()

    def search_backspace(self) -> bool:
        """Delete one character; False when the buffer was already empty."""
        if not self.search_buffer:
            return False
        self.search_buffer = self.search_buffer[:-1]
        self.history.reset()
        return True

    def search_history_prev(self) -> None:
        entry = self.history.prev()
        if entry is not None:
            self.search_buffer = entry

    def search_history_next(self) -> None:
        entry = self.history.next()
        if entry is not None:
            self.search_buffer = entry

    def cancel_search(self) -> None:
        self.search_buffer = ""
        self.history.reset()
        self.status_msg = ""

    def commit_search(self) -> bool:
        """Run the typed pattern.  False (with an error status) when the
        pattern does not compile; the caller stays in search input then."""
        pattern = self.search_buffer or self.last_pattern
        if not pattern:
            return True
        self.history.add(pattern)
        return self._run_search(pattern, self.search_direction)

    def _run_search(
        self, pattern: str, direction: Direction, keys_only: bool = False
    ) -> bool:
        try:
            state = search(
                self.tree, pattern, self.viewport.cursor, direction, keys_only
            )
        except SearchError as e:
            self.status_msg = f"Invalid pattern: {e}"
            return False
        self.last_pattern = pattern
        self.last_direction = direction
        self.last_keys_only = keys_only
        self.search_state = state
        if state is None:
            self.status_msg = f"Pattern not found: {pattern}"
            return True
        self._goto_current_match()
        return True

    # -- Match navigation --------------------------------------------------

    def next_match(self) -> None:
        self._step_match(reverse=False)

    def prev_match(self) -> None:
        self._step_match(reverse=True)

    def _step_match(self, reverse: bool) -> None:
        state = self.search_state
        if state is None:
            if not self.last_pattern:
                self.status_msg = "No previous search"
                return
            # 하이라이트가 지워진 뒤에도 마지막 패턴으로 다시 검색
            base = self.last_direction
            self._run_search(
                self.last_pattern,
                base.reverse if reverse else base,
                self.last_keys_only,
            )
            self.last_direction = base
            if self.search_state is not None:
                self.search_state.direction = base
            return
        direction = state.direction.reverse if reverse else state.direction
        step(state, direction)
        self._goto_current_match(direction)

    def search_key(self, direction: Direction) -> None:
        """Search for the exact key of the cursor node (vim ``*``/``#``)."""
        node = self.tree.nodes[self.viewport.cursor]
        if node.key is None:
            self.status_msg = "No key under cursor"
            return
        pattern = f"^{re.escape(key_text(node.key))}$\\C"
        self.history.add(pattern)
        self._run_search(pattern, direction, keys_only=True)

    def clear_search(self) -> None:
        self.search_state = None
        self.status_msg = ""

    def _goto_current_match(self, direction: Direction | None = None) -> None:
        state = self.search_state
        match = state.current_match
        reveal(self.tree, match.node)
        self.viewport.scroll_to(match.node)
        self._show_match_column(match)
        direction = direction or state.direction
        prefix = "/" if state.direction is Direction.FORWARD else "?"
        msg = f"{prefix}{state.pattern}  [{state.current + 1}/{len(state.matches)}]"
        if state.wrapped:
            if direction is Direction.FORWARD:
                msg += "  search hit BOTTOM, continuing at TOP"
            else:
                msg += "  search hit TOP, continuing at BOTTOM"
        self.status_msg = msg

    def _show_match_column(self, match: SearchMatch) -> None:
        """Scroll horizontally so the match start is on screen."""
        col = 0
        line = self.index.resolve(self.viewport.cursor_line)
        for frag in compose_line(self.tree, line, self.config.indent):
            if frag.field is match.field:
                col += text_width(frag.text[: frag.base + match.start])
                break
            col += text_width(frag.text)
        vp = self.viewport
        if col < vp.h_offset or col >= vp.h_offset + vp.width:
            vp.h_offset = max(0, col - vp.width // 2)

    # -- Misc --------------------------------------------------------------

    def quit(self) -> None:
        self.quit_requested = True
