"""Modal key handling: one key event in, one session action out."""

from __future__ import annotations

from enum import Enum, auto
from typing import Any

from jview.search import Direction
from jview.session import ViewerSession


class Mode(Enum):
    NORMAL = auto()
    SEARCH_INPUT = auto()


class Action(Enum):
    CURSOR_DOWN = auto()
    CURSOR_UP = auto()
    NEXT_SIBLING = auto()
    PREV_SIBLING = auto()
    PARENT = auto()
    COLLAPSE_OR_PARENT = auto()
    FIRST_CHILD = auto()
    DOCUMENT_START = auto()
    DOCUMENT_END = auto()
    TOGGLE = auto()
    TOGGLE_RECURSIVE = auto()
    SCROLL_DOWN = auto()
    SCROLL_UP = auto()
    PAGE_DOWN = auto()
    PAGE_UP = auto()
    HALF_PAGE_DOWN = auto()
    HALF_PAGE_UP = auto()
    SCROLL_LEFT = auto()
    SCROLL_RIGHT = auto()
    SEARCH_FORWARD = auto()
    SEARCH_BACKWARD = auto()
    NEXT_MATCH = auto()
    PREV_MATCH = auto()
    KEY_SEARCH_FORWARD = auto()
    KEY_SEARCH_BACKWARD = auto()
    CLEAR_SEARCH = auto()
    QUIT = auto()
    # SEARCH_INPUT
    APPEND_CHAR = auto()
    BACKSPACE = auto()
    COMMIT = auto()
    CANCEL = auto()
    HISTORY_PREV = auto()
    HISTORY_NEXT = auto()


_N = Mode.NORMAL
_S = Mode.SEARCH_INPUT

TRANSITIONS: dict[tuple[Mode, str], Action] = {
    (_N, "j"): Action.CURSOR_DOWN,
    (_N, "down"): Action.CURSOR_DOWN,
    (_N, "k"): Action.CURSOR_UP,
    (_N, "up"): Action.CURSOR_UP,
    (_N, "J"): Action.NEXT_SIBLING,
    (_N, "K"): Action.PREV_SIBLING,
    (_N, "H"): Action.PARENT,
    (_N, "h"): Action.COLLAPSE_OR_PARENT,
    (_N, "left"): Action.COLLAPSE_OR_PARENT,
    (_N, "l"): Action.FIRST_CHILD,
    (_N, "right"): Action.FIRST_CHILD,
    (_N, "g"): Action.DOCUMENT_START,
    (_N, "home"): Action.DOCUMENT_START,
    (_N, "G"): Action.DOCUMENT_END,
    (_N, "end"): Action.DOCUMENT_END,
    (_N, " "): Action.TOGGLE,
    (_N, "enter"): Action.TOGGLE,
    (_N, "e"): Action.TOGGLE_RECURSIVE,
    (_N, "ctrl+e"): Action.SCROLL_DOWN,
    (_N, "ctrl+y"): Action.SCROLL_UP,
    (_N, "ctrl+f"): Action.PAGE_DOWN,
    (_N, "pagedown"): Action.PAGE_DOWN,
    (_N, "ctrl+b"): Action.PAGE_UP,
    (_N, "pageup"): Action.PAGE_UP,
    (_N, "ctrl+d"): Action.HALF_PAGE_DOWN,
    (_N, "ctrl+u"): Action.HALF_PAGE_UP,
    (_N, "<"): Action.SCROLL_LEFT,
    (_N, ">"): Action.SCROLL_RIGHT,
    (_N, "/"): Action.SEARCH_FORWARD,
    (_N, "?"): Action.SEARCH_BACKWARD,
    (_N, "n"): Action.NEXT_MATCH,
    (_N, "N"): Action.PREV_MATCH,
    (_N, "*"): Action.KEY_SEARCH_FORWARD,
    (_N, "#"): Action.KEY_SEARCH_BACKWARD,
    (_N, "escape"): Action.CLEAR_SEARCH,
    (_N, "q"): Action.QUIT,
    (_N, "ctrl+c"): Action.QUIT,
    (_S, "escape"): Action.CANCEL,
    (_S, "enter"): Action.COMMIT,
    (_S, "backspace"): Action.BACKSPACE,
    (_S, "up"): Action.HISTORY_PREV,
    (_S, "down"): Action.HISTORY_NEXT,
}

# Actions that map straight onto a no-argument session method
_SESSION_CALLS = {
    Action.CURSOR_DOWN: "cursor_down",
    Action.CURSOR_UP: "cursor_up",
    Action.NEXT_SIBLING: "next_sibling",
    Action.PREV_SIBLING: "prev_sibling",
    Action.PARENT: "parent",
    Action.COLLAPSE_OR_PARENT: "collapse_or_parent",
    Action.FIRST_CHILD: "first_child",
    Action.DOCUMENT_START: "document_start",
    Action.DOCUMENT_END: "document_end",
    Action.TOGGLE: "toggle_collapse",
    Action.TOGGLE_RECURSIVE: "toggle_collapse_recursive",
    Action.SCROLL_DOWN: "scroll_down",
    Action.SCROLL_UP: "scroll_up",
    Action.PAGE_DOWN: "page_down",
    Action.PAGE_UP: "page_up",
    Action.HALF_PAGE_DOWN: "half_page_down",
    Action.HALF_PAGE_UP: "half_page_up",
    Action.SCROLL_LEFT: "scroll_left",
    Action.SCROLL_RIGHT: "scroll_right",
    Action.NEXT_MATCH: "next_match",
    Action.PREV_MATCH: "prev_match",
    Action.CLEAR_SEARCH: "clear_search",
    Action.QUIT: "quit",
    Action.HISTORY_PREV: "search_history_prev",
    Action.HISTORY_NEXT: "search_history_next",
}


def key_name(event: Any) -> str:
    """Printable character if the event carries one, else Textual's key name."""
    char = event.character
    if char and len(char) == 1 and char.isprintable():
        return char
    return event.key


class InputStateMachine:
    """Feeds key events to a :class:`ViewerSession`.

    ``event`` only needs ``key`` and ``character`` attributes, so a Textual
    ``events.Key`` and a ``SimpleNamespace`` both work.
    """

    def __init__(self, session: ViewerSession) -> None:
        self.session = session
        self.mode = Mode.NORMAL

    def feed(self, event: Any) -> Action | None:
        name = key_name(event)
        action = TRANSITIONS.get((self.mode, name))
        if action is None:
            if self.mode is Mode.SEARCH_INPUT and len(name) == 1:
                action = Action.APPEND_CHAR
            else:
                return None
        self._apply(action, name)
        return action

    def _apply(self, action: Action, name: str) -> None:
        session = self.session
        method = _SESSION_CALLS.get(action)
        if method is not None:
            getattr(session, method)()
            return

        if action is Action.SEARCH_FORWARD:
            session.begin_search(Direction.FORWARD)
            self.mode = Mode.SEARCH_INPUT
        elif action is Action.SEARCH_BACKWARD:
            session.begin_search(Direction.BACKWARD)
            self.mode = Mode.SEARCH_INPUT
        elif action is Action.KEY_SEARCH_FORWARD:
            session.search_key(Direction.FORWARD)
        elif action is Action.KEY_SEARCH_BACKWARD:
            session.search_key(Direction.BACKWARD)
        elif action is Action.APPEND_CHAR:
            session.search_append(name)
        elif action is Action.BACKSPACE:
            if not session.search_backspace():
                session.cancel_search()
                self.mode = Mode.NORMAL
        elif action is Action.COMMIT:
            # 패턴 오류면 입력 모드 유지
            if session.commit_search():
                self.mode = Mode.NORMAL
        elif action is Action.CANCEL:
            session.cancel_search()
            self.mode = Mode.NORMAL
