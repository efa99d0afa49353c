"""Textual widget that displays a JSON document read-only."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from jview.keymap import InputStateMachine, Mode
from jview.render import TextSink
from jview.search import Direction
from jview.session import ViewerSession
from jview.width import text_width


class JsonViewer(Widget, can_focus=True):
    """A folding JSON viewer with vim-style navigation and search.

    Key handling lives in :class:`~jview.keymap.InputStateMachine`; this
    widget only forwards events and paints the session.
    """

    DEFAULT_CSS = """
    JsonViewer {
        height: 1fr;
        background: $surface;
        color: $text;
        padding: 0 1;
    }
    JsonViewer:focus {
        border: none;
    }
    """

    @dataclass
    class Quit(Message):
        pass

    _MODE_LABEL = {
        Mode.NORMAL: " NORMAL ",
        Mode.SEARCH_INPUT: " SEARCH ",
    }
    _MODE_STYLE = {
        Mode.NORMAL: "bold white on dark_green",
        Mode.SEARCH_INPUT: "bold white on dark_magenta",
    }

    def __init__(
        self,
        session: ViewerSession,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.session = session
        self.machine = InputStateMachine(session)

    @property
    def mode(self) -> Mode:
        return self.machine.mode

    # -- Rendering ---------------------------------------------------------

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 3 or width < 1:
            return Text("(too small)")

        session = self.session
        viewport = session.viewport
        viewport.resize(width, height - 2)

        sink = TextSink(viewport.width, viewport.height)
        session.renderer.paint(viewport, sink, session.search_state)
        result = sink.text

        # status bar
        mode = self.mode
        mode_label = self._MODE_LABEL[mode]
        result.append(mode_label, style=self._MODE_STYLE[mode])
        status_msg = session.status_msg
        path = session.cursor_path()
        pos = f" {path}  Ln {viewport.cursor_line + 1}/{session.index.total()} "
        spacer_len = max(
            0,
            width
            - text_width(mode_label)
            - text_width(status_msg)
            - text_width(pos)
            - 2,
        )
        result.append(f"  {status_msg}")
        if spacer_len:
            result.append(" " * spacer_len)
        result.append(pos, style="bold")

        if mode is Mode.SEARCH_INPUT:
            prefix = "/" if session.search_direction is Direction.FORWARD else "?"
            result.append(f"\n{prefix}{session.search_buffer}", style="bold magenta")
            result.append(" ", style="reverse")
        return result

    # -- Key handling ------------------------------------------------------

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()

        action = self.machine.feed(event)
        if action is not None:
            self.log.debug("key", key=event.key, action=action.name)
        if self.session.quit_requested:
            self.post_message(self.Quit())
            return
        self.refresh()
