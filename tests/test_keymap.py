"""Tests for the modal key state machine."""

from types import SimpleNamespace

from jview.keymap import Action, InputStateMachine, Mode, key_name
from jview.session import ViewerSession

DOC = '{"x":"ab","y":["ab","c",{"z":"ab"}]}'


def _key(key, character=None):
    return SimpleNamespace(key=key, character=character)


def _char(ch):
    return _key(ch, ch)


def _machine(data=DOC):
    return InputStateMachine(ViewerSession.from_source(data))


def _type(machine, text):
    for ch in text:
        machine.feed(_char(ch))


class TestKeyName:
    def test_printable_character(self):
        assert key_name(_key("J", "J")) == "J"

    def test_space(self):
        assert key_name(_key("space", " ")) == " "

    def test_named_keys(self):
        assert key_name(_key("enter", "\r")) == "enter"
        assert key_name(_key("ctrl+f", "\x06")) == "ctrl+f"
        assert key_name(_key("down")) == "down"


class TestNormalMode:
    def test_movement(self):
        m = _machine()
        assert m.feed(_char("j")) is Action.CURSOR_DOWN
        assert m.session.cursor == 1
        assert m.feed(_key("down")) is Action.CURSOR_DOWN
        assert m.session.cursor == 2
        m.feed(_char("k"))
        assert m.session.cursor == 1

    def test_unknown_key_ignored(self):
        m = _machine()
        assert m.feed(_char("x")) is None
        assert m.feed(_key("f5")) is None
        assert m.mode is Mode.NORMAL

    def test_toggle_with_space_and_enter(self):
        m = _machine()
        m.feed(_key("space", " "))
        assert m.session.index.total() == 1
        m.feed(_key("enter", "\r"))
        assert m.session.index.total() == 10

    def test_document_end_and_start(self):
        m = _machine()
        m.feed(_char("G"))
        assert m.session.cursor == 6
        m.feed(_char("g"))
        assert m.session.cursor == 0

    def test_h_and_l(self):
        m = _machine()
        _type(m, "jj")
        m.feed(_char("h"))
        assert m.session.tree.nodes[2].collapsed
        m.feed(_char("l"))
        assert m.session.cursor == 3
        m.feed(_key("left"))
        assert m.session.cursor == 2

    def test_quit(self):
        m = _machine()
        assert m.feed(_char("q")) is Action.QUIT
        assert m.session.quit_requested

    def test_ctrl_c_quits(self):
        m = _machine()
        m.feed(_key("ctrl+c", "\x03"))
        assert m.session.quit_requested

    def test_star_searches_key(self):
        m = _machine('{"id":1,"a":{"id":2}}')
        m.feed(_char("j"))
        assert m.feed(_char("*")) is Action.KEY_SEARCH_FORWARD
        assert m.session.cursor == 3


class TestSearchInput:
    def test_slash_enters_search_mode(self):
        m = _machine()
        assert m.feed(_char("/")) is Action.SEARCH_FORWARD
        assert m.mode is Mode.SEARCH_INPUT

    def test_typed_keys_are_appended(self):
        m = _machine()
        m.feed(_char("/"))
        # 검색 입력 중에는 j/q 도 문자로 취급
        assert m.feed(_char("j")) is Action.APPEND_CHAR
        assert m.feed(_char("q")) is Action.APPEND_CHAR
        assert m.session.search_buffer == "jq"
        assert not m.session.quit_requested

    def test_commit(self):
        m = _machine()
        _type(m, "/ab")
        assert m.feed(_key("enter", "\r")) is Action.COMMIT
        assert m.mode is Mode.NORMAL
        assert m.session.cursor == 1
        m.feed(_char("n"))
        assert m.session.cursor == 3
        m.feed(_char("N"))
        assert m.session.cursor == 1

    def test_backward_search(self):
        m = _machine()
        m.feed(_char("G"))
        _type(m, "?ab")
        m.feed(_key("enter", "\r"))
        assert m.session.cursor == 3

    def test_invalid_pattern_stays_in_search(self):
        m = _machine()
        _type(m, "/(")
        m.feed(_key("enter", "\r"))
        assert m.mode is Mode.SEARCH_INPUT
        assert m.session.status_msg.startswith("Invalid pattern:")
        m.feed(_key("backspace"))
        _type(m, "c")
        m.feed(_key("enter", "\r"))
        assert m.mode is Mode.NORMAL
        assert m.session.cursor == 4

    def test_escape_cancels(self):
        m = _machine()
        _type(m, "/ab")
        assert m.feed(_key("escape")) is Action.CANCEL
        assert m.mode is Mode.NORMAL
        assert m.session.search_buffer == ""
        assert m.session.cursor == 0

    def test_backspace_on_empty_buffer_leaves_search(self):
        m = _machine()
        _type(m, "/a")
        m.feed(_key("backspace"))
        assert m.mode is Mode.SEARCH_INPUT
        m.feed(_key("backspace"))
        assert m.mode is Mode.NORMAL

    def test_history_keys(self):
        m = _machine()
        _type(m, "/ab")
        m.feed(_key("enter", "\r"))
        m.feed(_char("/"))
        m.feed(_key("up"))
        assert m.session.search_buffer == "ab"
        m.feed(_key("down"))
        assert m.session.search_buffer == ""

    def test_escape_in_normal_clears_highlight(self):
        m = _machine()
        _type(m, "/ab")
        m.feed(_key("enter", "\r"))
        assert m.feed(_key("escape")) is Action.CLEAR_SEARCH
        assert m.session.search_state is None
