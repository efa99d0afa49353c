"""Terminal JSON viewer application and command-line entry point."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from textual.app import App, ComposeResult

from jview.config import ViewerConfig
from jview.errors import ParseError
from jview.render import Theme
from jview.session import ViewerSession
from jview.widget import JsonViewer


class JsonViewerApp(App):
    """TUI app that wraps the JsonViewer widget."""

    CSS = """
    Screen {
        background: $surface;
    }
    #viewer {
        height: 1fr;
    }
    """
    TITLE = "jview"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, session: ViewerSession, file_path: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self.session = session
        self.file_path = file_path

    def compose(self) -> ComposeResult:
        yield JsonViewer(self.session, id="viewer")

    def on_mount(self) -> None:
        self.sub_title = self.file_path or "[stdin]"
        self.log.info(
            "loaded",
            file=self.sub_title,
            nodes=len(self.session.tree),
            lines=self.session.index.total(),
        )
        self.query_one("#viewer").focus()

    def on_json_viewer_quit(self, event: JsonViewer.Quit) -> None:
        self.log.info("quit")
        self.exit()


def _read_input(file_path: str) -> bytes:
    if not file_path or file_path == "-":
        return sys.stdin.buffer.read()
    return Path(file_path).read_bytes()


def _reattach_tty() -> None:
    """Point fd 0 back at the terminal after the document came from a pipe."""
    tty_fd = os.open("/dev/tty", os.O_RDONLY)
    os.dup2(tty_fd, 0)
    os.close(tty_fd)
    sys.stdin = open(0, "r")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="jview",
        description="Read-only JSON viewer with folding and search",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="",
        help="JSON file to view ('-' or omitted reads stdin)",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="spaces per nesting level (default: 2)",
    )
    parser.add_argument(
        "--collapse-depth",
        type=int,
        default=None,
        metavar="N",
        help="start with containers at depth N and deeper collapsed",
    )
    parser.add_argument(
        "--scrolloff",
        type=int,
        default=3,
        help="lines kept between the cursor and the window edge (default: 3)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="use a monochrome theme",
    )
    args = parser.parse_args(argv)

    if args.indent < 0:
        parser.error("--indent must not be negative")
    if args.scrolloff < 0:
        parser.error("--scrolloff must not be negative")

    file_path: str = args.file
    try:
        data = _read_input(file_path)
    except OSError as exc:
        print(f"jview: {exc}", file=sys.stderr)
        sys.exit(1)

    config = ViewerConfig(
        indent=args.indent,
        collapse_depth=args.collapse_depth,
        scrolloff=args.scrolloff,
        theme=Theme.monochrome() if args.no_color else Theme.default(),
    )
    try:
        session = ViewerSession.from_source(data, config)
    except ParseError as exc:
        name = file_path if file_path and file_path != "-" else "<stdin>"
        print(f"jview: {name}: {exc}", file=sys.stderr)
        sys.exit(1)

    if not sys.stdin.isatty():
        # 파이프로 읽은 경우 키 입력은 터미널에서 받는다
        try:
            _reattach_tty()
        except OSError as exc:
            print(f"jview: cannot open terminal: {exc}", file=sys.stderr)
            sys.exit(1)

    app = JsonViewerApp(session, file_path=file_path if file_path != "-" else "")
    app.run()


if __name__ == "__main__":
    main()
