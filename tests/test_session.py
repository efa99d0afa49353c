"""Tests for ViewerSession actions."""

from jview.config import ViewerConfig
from jview.search import Direction
from jview.session import ViewerSession

SCENARIO = '{"a":1,"b":[1,2,3]}'
DOC = '{"x":"ab","y":["ab","c",{"z":"ab"}]}'


def _session(data=SCENARIO, **config):
    return ViewerSession.from_source(data, ViewerConfig(**config))


def _search(session, pattern, direction=Direction.FORWARD):
    session.begin_search(direction)
    for ch in pattern:
        session.search_append(ch)
    return session.commit_search()


class TestMovement:
    def test_cursor_down_up(self):
        s = _session()
        s.cursor_down()
        assert s.cursor == 1
        s.cursor_down()
        s.cursor_down()
        assert s.cursor == 3
        s.cursor_up()
        assert s.cursor == 2

    def test_cursor_down_skips_close_lines(self):
        s = _session('{"a":[1],"b":2}')
        s.viewport.set_cursor(2)
        s.cursor_down()
        assert s.cursor == 3

    def test_cursor_stops_at_document_edges(self):
        s = _session()
        s.cursor_up()
        assert s.cursor == 0
        s.document_end()
        assert s.cursor == 5
        s.cursor_down()
        assert s.cursor == 5
        s.document_start()
        assert s.cursor == 0

    def test_siblings_and_parent(self):
        s = _session()
        s.viewport.set_cursor(1)
        s.next_sibling()
        assert s.cursor == 2
        s.next_sibling()
        assert s.cursor == 2
        s.prev_sibling()
        assert s.cursor == 1
        s.parent()
        assert s.cursor == 0

    def test_first_child_expands(self):
        s = _session()
        s.viewport.set_cursor(2)
        s.toggle_collapse()
        assert s.tree.nodes[2].collapsed
        s.first_child()
        assert not s.tree.nodes[2].collapsed
        assert s.cursor == 3

    def test_collapse_or_parent(self):
        s = _session()
        s.viewport.set_cursor(2)
        s.collapse_or_parent()
        assert s.tree.nodes[2].collapsed
        assert s.cursor == 2
        s.collapse_or_parent()
        assert s.cursor == 0

    def test_toggle_hides_cursor_subtree(self):
        s = _session()
        s.viewport.set_cursor(4)
        s.tree.toggle_collapse(2)
        s.viewport.sync()
        assert s.cursor == 2

    def test_recursive_toggle(self):
        s = _session()
        s.toggle_collapse_recursive()
        assert s.index.total() == 1
        s.toggle_collapse_recursive()
        assert s.index.total() == 8

    def test_cursor_path(self):
        s = _session()
        s.viewport.set_cursor(4)
        assert s.cursor_path() == "$.b[1]"

    def test_collapse_depth_config(self):
        s = _session(collapse_depth=1)
        assert s.index.total() == 4


class TestScrolling:
    def test_half_page(self):
        s = _session()
        s.viewport.resize(20, 4)
        s.half_page_down()
        assert s.viewport.cursor_line == 2
        s.half_page_up()
        assert s.viewport.cursor_line == 0

    def test_scroll_right_limited_by_widest_line(self):
        s = _session()
        s.viewport.resize(4, 3)
        s.scroll_right()
        # 가장 긴 줄 "  a: 1," 이 7칸
        assert s.viewport.h_offset == 3
        s.scroll_left()
        assert s.viewport.h_offset == 0


class TestSearch:
    def test_commit_moves_to_first_match(self):
        s = _session(DOC)
        assert _search(s, "ab")
        assert s.cursor == 1
        assert s.status_msg == "/ab  [1/3]"

    def test_next_and_wrap(self):
        s = _session(DOC)
        _search(s, "ab")
        s.next_match()
        assert s.cursor == 3
        s.next_match()
        assert s.cursor == 6
        s.next_match()
        assert s.cursor == 1
        assert "search hit BOTTOM, continuing at TOP" in s.status_msg

    def test_prev_wraps_to_bottom(self):
        s = _session(DOC)
        _search(s, "ab")
        s.prev_match()
        assert s.cursor == 6
        assert "search hit TOP, continuing at BOTTOM" in s.status_msg

    def test_backward_search_reverses_n(self):
        s = _session(DOC)
        s.document_end()
        _search(s, "ab", Direction.BACKWARD)
        assert s.cursor == 3
        assert s.status_msg.startswith("?ab")
        s.next_match()
        assert s.cursor == 1
        s.prev_match()
        assert s.cursor == 3

    def test_search_reveals_collapsed_match(self):
        s = _session(DOC)
        s.tree.toggle_collapse(2)
        s.viewport.sync()
        _search(s, "^c$")
        assert s.cursor == 4
        assert not s.tree.nodes[2].collapsed

    def test_not_found(self):
        s = _session(DOC)
        assert _search(s, "zzz")
        assert s.status_msg == "Pattern not found: zzz"
        assert s.cursor == 0
        assert s.search_state is None

    def test_invalid_pattern(self):
        s = _session(DOC)
        assert not _search(s, "(")
        assert s.status_msg.startswith("Invalid pattern:")

    def test_no_previous_search(self):
        s = _session(DOC)
        s.next_match()
        assert s.status_msg == "No previous search"

    def test_n_after_clear_reruns_last_pattern(self):
        s = _session(DOC)
        _search(s, "ab")
        s.clear_search()
        assert s.search_state is None
        s.next_match()
        assert s.cursor == 3
        assert s.search_state is not None

    def test_prev_after_clear_keeps_direction(self):
        s = _session(DOC)
        _search(s, "ab")
        s.next_match()
        s.clear_search()
        s.prev_match()
        assert s.cursor == 1
        assert s.last_direction is Direction.FORWARD

    def test_empty_commit_reuses_last_pattern(self):
        s = _session(DOC)
        _search(s, "ab")
        _search(s, "")
        assert s.cursor == 3

    def test_history_browsing(self):
        s = _session(DOC)
        _search(s, "ab")
        _search(s, "c")
        s.begin_search(Direction.FORWARD)
        s.search_history_prev()
        assert s.search_buffer == "c"
        s.search_history_prev()
        assert s.search_buffer == "ab"
        s.search_history_next()
        assert s.search_buffer == "c"

    def test_search_key(self):
        s = _session('{"id":1,"a":{"id":2,"idx":3}}')
        s.viewport.set_cursor(1)
        s.search_key(Direction.FORWARD)
        assert s.cursor == 3
        s.next_match()
        assert s.cursor == 1

    def test_search_key_skips_matching_values(self):
        s = _session('{"a":1,"b":"a","c":{"a":2}}')
        s.viewport.set_cursor(1)
        s.search_key(Direction.FORWARD)
        assert s.cursor == 4
        assert [m.node for m in s.search_state.matches] == [1, 4]
        s.clear_search()
        # n 으로 다시 검색해도 key만 찾는다
        s.next_match()
        assert s.cursor == 1

    def test_search_key_without_key(self):
        s = _session()
        s.search_key(Direction.FORWARD)
        assert s.status_msg == "No key under cursor"

    def test_backspace(self):
        s = _session()
        s.begin_search(Direction.FORWARD)
        s.search_append("x")
        assert s.search_backspace()
        assert not s.search_backspace()


class TestQuit:
    def test_quit(self):
        s = _session()
        s.quit()
        assert s.quit_requested
