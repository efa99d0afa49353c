"""Turn a window of logical lines into fixed-width rows of styled cells."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import NamedTuple, Protocol

from rich.text import Text

from jview.labels import MatchField, key_is_plain, key_label, summary_text, value_text
from jview.lines import Line, LineIndex, LineRole
from jview.search import SearchState
from jview.tokens import NodeKind
from jview.tree import DocumentTree
from jview.viewport import Viewport
from jview.width import cells, text_width


class StyleKind(Enum):
    TEXT = auto()
    KEY = auto()
    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    NULL = auto()
    PUNCTUATION = auto()
    SUMMARY = auto()
    FILLER = auto()
    MATCH = auto()
    CURRENT_MATCH = auto()


_VALUE_KIND = {
    NodeKind.STRING: StyleKind.STRING,
    NodeKind.NUMBER: StyleKind.NUMBER,
    NodeKind.BOOL: StyleKind.BOOLEAN,
    NodeKind.NULL: StyleKind.NULL,
}

_BRACKETS = {NodeKind.OBJECT: ("{", "}"), NodeKind.ARRAY: ("[", "]")}


@dataclass
class Theme:
    """Maps semantic style kinds to Rich style strings."""

    styles: dict[StyleKind, str] = field(default_factory=dict)
    cursor_line: str = "on grey23"

    def style(self, kind: StyleKind) -> str:
        return self.styles.get(kind, "")

    @classmethod
    def default(cls) -> Theme:
        return cls(
            {
                StyleKind.TEXT: "",
                StyleKind.KEY: "cyan",
                StyleKind.STRING: "green",
                StyleKind.NUMBER: "yellow",
                StyleKind.BOOLEAN: "magenta",
                StyleKind.NULL: "magenta",
                StyleKind.PUNCTUATION: "bold white",
                StyleKind.SUMMARY: "dim italic",
                StyleKind.FILLER: "dim blue",
                StyleKind.MATCH: "black on dark_goldenrod",
                StyleKind.CURRENT_MATCH: "black on yellow",
            }
        )

    @classmethod
    def monochrome(cls) -> Theme:
        return cls(
            {
                StyleKind.SUMMARY: "dim",
                StyleKind.FILLER: "dim",
                StyleKind.MATCH: "underline",
                StyleKind.CURRENT_MATCH: "reverse",
            },
            cursor_line="bold",
        )


class Fragment(NamedTuple):
    text: str
    kind: StyleKind
    field: MatchField | None = None
    base: int = 0  # offset of the field's searchable text inside this fragment


class Cell(NamedTuple):
    glyph: str  # "" marks the right half of a wide glyph
    style: str


class RenderSink(Protocol):
    def set_cell(self, row: int, col: int, glyph: str, style: str) -> None: ...

    def flush(self) -> None: ...


def compose_line(tree: DocumentTree, line: Line, indent: int = 2) -> list[Fragment]:
    """Textual fragments of one logical line.

    Line shapes::

        key: value,       VALUE   (scalar or empty container)
        key: {            OPEN
        key: [...] (3 items),   SUMMARY
        },                CLOSE

    A trailing comma follows every non-opening line whose node has a next
    sibling.
    """
    node = tree.nodes[line.node]
    frags: list[Fragment] = []
    if line.depth and indent:
        frags.append(Fragment(" " * (line.depth * indent), StyleKind.TEXT))

    role = line.role
    if role is not LineRole.CLOSE and node.key is not None:
        base = 0 if key_is_plain(node.key) else 1
        frags.append(Fragment(key_label(node.key), StyleKind.KEY, MatchField.KEY, base))
        frags.append(Fragment(": ", StyleKind.PUNCTUATION))

    if role is LineRole.VALUE:
        if node.kind.is_container:
            opening, closing = _BRACKETS[node.kind]
            frags.append(Fragment(opening + closing, StyleKind.PUNCTUATION))
        elif node.kind is NodeKind.STRING:
            frags.append(
                Fragment(
                    f'"{value_text(node)}"', StyleKind.STRING, MatchField.VALUE, 1
                )
            )
        else:
            frags.append(
                Fragment(node.text, _VALUE_KIND[node.kind], MatchField.VALUE, 0)
            )
    elif role is LineRole.OPEN:
        frags.append(Fragment(_BRACKETS[node.kind][0], StyleKind.PUNCTUATION))
        return frags
    elif role is LineRole.SUMMARY:
        opening, closing = _BRACKETS[node.kind]
        frags.append(Fragment(f"{opening}...{closing}", StyleKind.PUNCTUATION))
        frags.append(Fragment(f" {summary_text(node)}", StyleKind.SUMMARY))
    else:
        frags.append(Fragment(_BRACKETS[node.kind][1], StyleKind.PUNCTUATION))

    if tree.next_sibling(node.id) is not None:
        frags.append(Fragment(",", StyleKind.PUNCTUATION))
    return frags


def line_text(tree: DocumentTree, line: Line, indent: int = 2) -> str:
    return "".join(f.text for f in compose_line(tree, line, indent))


def row_text(row: list[Cell]) -> str:
    return "".join(cell.glyph for cell in row)


class Renderer:
    """Renders the viewport's window into exactly ``height`` rows of
    exactly ``width`` cells."""

    def __init__(
        self,
        tree: DocumentTree,
        index: LineIndex,
        theme: Theme | None = None,
        indent: int = 2,
    ) -> None:
        self.tree = tree
        self.index = index
        self.theme = theme or Theme.default()
        self.indent = indent

    def _styled_runs(
        self, line: Line, search: SearchState | None
    ) -> list[tuple[str, StyleKind]]:
        """Fragments with match spans split out as their own runs."""
        frags = compose_line(self.tree, line, self.indent)
        spans = search.spans_for(line.node) if search is not None else []
        if not spans or line.role is LineRole.CLOSE:
            return [(f.text, f.kind) for f in frags]
        runs: list[tuple[str, StyleKind]] = []
        for frag in frags:
            hits = [
                (start + frag.base, end + frag.base, current)
                for fld, start, end, current in spans
                if fld is frag.field
            ]
            if not hits:
                runs.append((frag.text, frag.kind))
                continue
            pos = 0
            for start, end, current in sorted(hits):
                start = max(start, pos)
                if start >= end:
                    continue
                if start > pos:
                    runs.append((frag.text[pos:start], frag.kind))
                kind = StyleKind.CURRENT_MATCH if current else StyleKind.MATCH
                runs.append((frag.text[start:end], kind))
                pos = end
            if pos < len(frag.text):
                runs.append((frag.text[pos:], frag.kind))
        return runs

    def render_line(
        self,
        line: Line,
        width: int,
        h_offset: int = 0,
        search: SearchState | None = None,
        background: str = "",
    ) -> list[Cell]:
        """One logical line clipped to ``[h_offset, h_offset + width)`` columns.

        A wide glyph cut by the left edge leaves a blank boundary column; one
        that does not fit at the right edge is replaced by blank padding.
        """
        theme = self.theme
        blank = Cell(" ", background)
        row: list[Cell] = []
        col = 0
        right = h_offset + width
        full = False
        for text, kind in self._styled_runs(line, search):
            style = theme.style(kind)
            if background:
                style = f"{style} {background}" if style else background
            for glyph, w in cells(text):
                if col + w <= h_offset:
                    col += w
                    continue
                if col < h_offset:
                    # 왼쪽 경계에 걸친 wide 문자: 경계 칸은 공백
                    row.extend([blank] * (col + w - h_offset))
                    col += w
                    continue
                if col + w > right:
                    full = True
                    break
                row.append(Cell(glyph, style))
                if w == 2:
                    row.append(Cell("", style))
                col += w
            if full or col >= right:
                break
        if len(row) > width:
            del row[width:]
        row.extend([blank] * (width - len(row)))
        return row

    def render(
        self, viewport: Viewport, search: SearchState | None = None
    ) -> list[list[Cell]]:
        width = max(1, viewport.width)
        height = max(1, viewport.height)
        rows: list[list[Cell]] = []
        cursor_bg = self.theme.cursor_line
        for line in self.index.window(viewport.top, height):
            on_cursor = line.node == viewport.cursor and line.role is not LineRole.CLOSE
            rows.append(
                self.render_line(
                    line,
                    width,
                    viewport.h_offset,
                    search,
                    cursor_bg if on_cursor else "",
                )
            )
        filler = Cell("~", self.theme.style(StyleKind.FILLER))
        blank = Cell(" ", "")
        while len(rows) < height:
            rows.append([filler] + [blank] * (width - 1))
        return rows

    def paint(
        self, viewport: Viewport, sink: RenderSink, search: SearchState | None = None
    ) -> None:
        for r, row in enumerate(self.render(viewport, search)):
            for c, cell in enumerate(row):
                sink.set_cell(r, c, cell.glyph, cell.style)
        sink.flush()

    def max_line_width(self, lines: list[Line]) -> int:
        """Widest of *lines* in display columns (for horizontal clamping)."""
        return max(
            (text_width(line_text(self.tree, ln, self.indent)) for ln in lines),
            default=0,
        )


class TextSink:
    """Render sink collecting cells into a Rich ``Text`` block."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._grid: list[list[Cell]] = [
            [Cell(" ", "")] * width for _ in range(height)
        ]
        self.text = Text()

    def set_cell(self, row: int, col: int, glyph: str, style: str) -> None:
        if 0 <= row < self.height and 0 <= col < self.width:
            self._grid[row][col] = Cell(glyph, style)

    def flush(self) -> None:
        text = Text()
        for row in self._grid:
            # 같은 스타일이 이어지는 칸은 한 번에 추가
            run: list[str] = []
            run_style = None
            for cell in row:
                if cell.style != run_style and run:
                    text.append("".join(run), style=run_style or None)
                    run = []
                run_style = cell.style
                run.append(cell.glyph)
            if run:
                text.append("".join(run), style=run_style or None)
            text.append("\n")
        self.text = text
