"""Tests for DocumentTree construction, navigation and collapse counts."""

import json
import random

import pytest

from jview.errors import ParseError
from jview.tokens import NodeKind, Token, TokenType
from jview.tree import ChildLineCounts, DocumentTree

SAMPLE = '{"a": 1, "b": [1, 2, 3], "c": {"d": {"e": null}, "f": []}}'


def _tree(data=SAMPLE):
    return DocumentTree.from_source(data)


class TestChildLineCounts:
    """Fenwick tree over child line counts."""

    def test_prefix(self):
        counts = ChildLineCounts([1, 3, 1, 5])
        assert [counts.prefix(i) for i in range(5)] == [0, 1, 4, 5, 10]

    def test_add(self):
        counts = ChildLineCounts([1, 3, 1, 5])
        counts.add(1, -2)
        assert counts.prefix(4) == 8
        assert counts.prefix(2) == 2

    def test_find(self):
        counts = ChildLineCounts([1, 3, 1, 5])
        assert counts.find(0) == (0, 0)
        assert counts.find(1) == (1, 0)
        assert counts.find(3) == (1, 2)
        assert counts.find(4) == (2, 0)
        assert counts.find(9) == (3, 4)


class TestBuild:
    """Arena layout after parsing."""

    def test_ids_in_document_order(self):
        tree = _tree()
        kinds = [n.kind for n in tree.nodes]
        assert kinds == [
            NodeKind.OBJECT,
            NodeKind.NUMBER,
            NodeKind.ARRAY,
            NodeKind.NUMBER,
            NodeKind.NUMBER,
            NodeKind.NUMBER,
            NodeKind.OBJECT,
            NodeKind.OBJECT,
            NodeKind.NULL,
            NodeKind.ARRAY,
        ]

    def test_keys_and_parents(self):
        tree = _tree()
        assert [n.key for n in tree.nodes] == [
            None, "a", "b", None, None, None, "c", "d", "e", "f",
        ]
        assert tree.nodes[4].parent == 2
        assert tree.nodes[4].index == 1
        assert tree.nodes[8].depth == 3

    def test_subtree_last(self):
        tree = _tree()
        assert tree.nodes[0].last == 9
        assert tree.nodes[2].last == 5
        assert tree.nodes[6].last == 9
        assert tree.nodes[1].last == 1

    def test_line_count_expanded(self):
        # { a b [ 1 2 3 ] c { d { e } f } }
        assert _tree().total_lines() == 14

    def test_empty_container_is_one_line(self):
        tree = _tree("[]")
        assert tree.total_lines() == 1
        assert not tree.is_collapsible(0)

    def test_scalar_root(self):
        tree = _tree('"x"')
        assert len(tree) == 1
        assert tree.total_lines() == 1

    def test_duplicate_keys_kept(self):
        tree = _tree('{"a": 1, "a": 2}')
        assert [n.key for n in tree.nodes[1:]] == ["a", "a"]


class TestBuildErrors:
    """Inconsistent token streams are rejected."""

    def test_parse_error_offset(self):
        with pytest.raises(ParseError) as exc_info:
            _tree('{"a": [1, 2}')
        assert exc_info.value.offset == 11

    def test_unbalanced_end(self):
        with pytest.raises(ParseError, match="unbalanced container end"):
            DocumentTree.build([Token(TokenType.VALUE_END, start=0, end=1)])

    def test_unclosed_container(self):
        tokens = [Token(TokenType.VALUE_START, NodeKind.ARRAY, start=0, end=1)]
        with pytest.raises(ParseError, match="unexpected end of input"):
            DocumentTree.build(tokens)

    def test_value_without_key(self):
        tokens = [
            Token(TokenType.VALUE_START, NodeKind.OBJECT, start=0, end=1),
            Token(TokenType.SCALAR, NodeKind.NUMBER, "1", start=1, end=2),
        ]
        with pytest.raises(ParseError, match="value without key"):
            DocumentTree.build(tokens)

    def test_multiple_roots(self):
        tokens = [
            Token(TokenType.SCALAR, NodeKind.NUMBER, "1", start=0, end=1),
            Token(TokenType.SCALAR, NodeKind.NUMBER, "2", start=2, end=3),
        ]
        with pytest.raises(ParseError, match="multiple top-level values"):
            DocumentTree.build(tokens)

    def test_key_in_array(self):
        tokens = [
            Token(TokenType.VALUE_START, NodeKind.ARRAY, start=0, end=1),
            Token(TokenType.KEY, text="a", start=1, end=4),
        ]
        with pytest.raises(ParseError, match="key outside object"):
            DocumentTree.build(tokens)


class TestNavigation:
    def test_siblings(self):
        tree = _tree()
        assert tree.next_sibling(1) == 2
        assert tree.next_sibling(2) == 6
        assert tree.next_sibling(6) is None
        assert tree.prev_sibling(6) == 2
        assert tree.prev_sibling(1) is None
        assert tree.next_sibling(0) is None

    def test_children(self):
        tree = _tree()
        assert tree.first_child(2) == 3
        assert tree.last_child(2) == 5
        assert tree.first_child(1) is None
        assert tree.first_child(9) is None

    def test_ancestors_nearest_first(self):
        assert _tree().ancestors(8) == [7, 6, 0]

    def test_contains(self):
        tree = _tree()
        assert tree.contains(6, 8)
        assert not tree.contains(2, 6)
        assert tree.contains(0, 9)


class TestCollapse:
    """Incremental line counts must always equal a full recount."""

    def test_toggle(self):
        tree = _tree()
        tree.toggle_collapse(2)
        assert tree.total_lines() == 10
        tree.toggle_collapse(2)
        assert tree.total_lines() == 14

    def test_toggle_scalar_is_noop(self):
        tree = _tree()
        tree.toggle_collapse(1)
        tree.toggle_collapse(9)
        assert tree.total_lines() == 14

    def test_collapse_under_collapsed_ancestor(self):
        tree = _tree()
        tree.toggle_collapse(6)
        assert tree.total_lines() == 9
        tree.toggle_collapse(7)
        assert tree.total_lines() == 9
        tree.toggle_collapse(6)
        # c { d {...} f }
        assert tree.total_lines() == 12
        assert tree.total_lines() == tree.recount()

    def test_recursive_collapse(self):
        tree = _tree()
        tree.toggle_collapse(0, recursive=True)
        assert tree.total_lines() == 1
        assert all(n.collapsed for n in tree.nodes if n.children)
        tree.toggle_collapse(0, recursive=True)
        assert tree.total_lines() == 14

    def test_recursive_on_inner_node(self):
        tree = _tree()
        tree.set_collapsed(6, True, recursive=True)
        assert tree.nodes[7].collapsed
        tree.set_collapsed(6, False)
        assert tree.total_lines() == tree.recount()

    def test_collapse_to_depth(self):
        tree = _tree()
        tree.collapse_to_depth(1)
        assert [n.id for n in tree.nodes if n.collapsed] == [2, 6, 7]
        assert tree.total_lines() == 5
        tree.expand_all()
        assert tree.total_lines() == 14

    def test_random_toggles_match_recount(self):
        """무작위 접기/펼치기 후에도 캐시된 줄 수가 전체 재계산과 같아야 한다."""
        rng = random.Random(1234)
        doc = {
            f"k{i}": [{"x": j, "y": [j, {"z": [1, 2]}]} for j in range(i % 4)]
            for i in range(12)
        }
        tree = _tree(json.dumps(doc))
        containers = [n.id for n in tree.nodes if n.children]
        for _ in range(300):
            node_id = rng.choice(containers)
            tree.toggle_collapse(node_id, recursive=rng.random() < 0.2)
            assert tree.total_lines() == tree.recount()
            for cid in containers:
                node = tree.nodes[cid]
                if not node.collapsed:
                    assert tree.visible_lines(cid) == tree.recount(cid)


class TestContent:
    def test_value(self):
        tree = _tree()
        assert tree.value(6) == {"d": {"e": None}, "f": []}
        assert tree.value(4) == 2

    def test_path(self):
        tree = _tree('{"a": [{"b c": 1, "ok_1": 2}]}')
        assert tree.path(0) == "$"
        assert tree.path(2) == "$.a[0]"
        assert tree.path(3) == '$.a[0]["b c"]'
        assert tree.path(4) == "$.a[0].ok_1"

    def test_child_count(self):
        tree = _tree()
        assert tree.child_count(0) == 3
        assert tree.child_count(9) == 0
