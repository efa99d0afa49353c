"""Scroll position and cursor over a LineIndex."""

from __future__ import annotations

from dataclasses import dataclass

from jview.lines import LineIndex, LineRole

MIN_WIDTH = 1
MIN_HEIGHT = 1


@dataclass
class Viewport:
    """Vertical/horizontal scroll state plus the cursor node.

    The cursor is a node id, never a line number; ``cursor_line`` is derived
    from it and refreshed by :meth:`sync`.  All operations clamp.
    """

    index: LineIndex
    width: int = 80
    height: int = 24
    top: int = 0
    cursor: int = 0
    cursor_line: int = 0
    h_offset: int = 0  # display columns
    scrolloff: int = 3

    def resize(self, width: int, height: int) -> None:
        self.width = max(MIN_WIDTH, width)
        self.height = max(MIN_HEIGHT, height)
        self.sync()

    def _margin(self) -> int:
        return min(self.scrolloff, (self.height - 1) // 2)

    def _max_top(self) -> int:
        return max(0, self.index.total() - self.height)

    def _clamp_top(self) -> None:
        self.top = max(0, min(self.top, self._max_top()))

    def sync(self) -> None:
        """Re-anchor the cursor on a visible node and re-clamp the scroll."""
        self.cursor = self.index.visible_anchor(self.cursor)
        self.cursor_line = self.index.line_of(self.cursor)
        self._clamp_top()
        self._keep_cursor_visible()

    def _keep_cursor_visible(self) -> None:
        margin = self._margin()
        if self.cursor_line < self.top + margin:
            self.top = self.cursor_line - margin
        elif self.cursor_line > self.top + self.height - 1 - margin:
            self.top = self.cursor_line - self.height + 1 + margin
        self._clamp_top()

    def set_cursor(self, node_id: int) -> None:
        self.cursor = node_id
        self.sync()

    def scroll_to(self, node_id: int) -> None:
        """Move the cursor to *node_id* and scroll it into view."""
        self.set_cursor(node_id)

    def cursor_to_line(self, line: int, forward: bool = True) -> None:
        """Put the cursor on the node owning *line*, skipping close lines."""
        last = self.index.total() - 1
        line = max(0, min(line, last))
        # 닫는 괄호 줄에는 커서를 두지 않는다
        probe = line
        step = 1 if forward else -1
        while 0 <= probe <= last:
            resolved = self.index.resolve(probe)
            if resolved.role is not LineRole.CLOSE:
                break
            probe += step
        else:
            # 문서 끝까지 닫는 줄뿐이면 위쪽으로 찾는다
            probe = line - 1
            resolved = self.index.resolve(probe)
            while resolved.role is LineRole.CLOSE:
                probe -= 1
                resolved = self.index.resolve(probe)
        self.cursor = resolved.node
        self.cursor_line = resolved.number

    def scroll(self, delta: int) -> None:
        """Scroll the window; the cursor follows if it would leave it."""
        self.top += delta
        self._clamp_top()
        margin = self._margin()
        lo = self.top + margin if self.top > 0 else 0
        last = self.index.total() - 1
        hi = self.top + self.height - 1 - margin
        if self.top + self.height - 1 >= last:
            hi = last
        if self.cursor_line < lo:
            self.cursor_to_line(lo, forward=True)
        elif self.cursor_line > hi:
            self.cursor_to_line(hi, forward=False)
        else:
            return
        # 닫는 줄만 남은 창이면 커서가 창 밖으로 밀려나므로 창을 되돌린다
        self._keep_cursor_visible()

    def page_down(self) -> None:
        self.move_cursor_lines(self.height)

    def page_up(self) -> None:
        self.move_cursor_lines(-self.height)

    def move_cursor_lines(self, delta: int) -> None:
        """Move the cursor by *delta* lines and scroll the window with it."""
        self.top += delta
        self._clamp_top()
        self.cursor_to_line(self.cursor_line + delta, forward=delta > 0)
        self._keep_cursor_visible()

    def horizontal_scroll(self, delta: int, limit: int | None = None) -> None:
        """Shift the horizontal offset by *delta* display columns."""
        offset = max(0, self.h_offset + delta)
        if limit is not None:
            offset = min(offset, max(0, limit))
        self.h_offset = offset
