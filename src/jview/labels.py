"""Display text of node keys and values, shared by rendering and search."""

from __future__ import annotations

import re
from enum import Enum, auto

from jview.escapes import escape_json_string, safe_unescape
from jview.tokens import NodeKind
from jview.tree import Node

_PLAIN_KEY_RE = re.compile(r'[^\s"\\:,\[\]{}]+\Z')


class MatchField(Enum):
    KEY = auto()
    VALUE = auto()


def key_is_plain(key: str) -> bool:
    return bool(_PLAIN_KEY_RE.match(key)) and key.isprintable()


def key_text(key: str) -> str:
    """Key as shown between any quotes."""
    if key_is_plain(key):
        return key
    return escape_json_string(key)


def key_label(key: str) -> str:
    """Key as shown on screen: bare when plain, otherwise quoted."""
    if key_is_plain(key):
        return key
    return f'"{escape_json_string(key)}"'


def value_text(node: Node) -> str:
    """Scalar content as shown between any quotes; empty for containers."""
    if node.kind is NodeKind.STRING:
        return safe_unescape(node.text[1:-1])
    if node.kind.is_container:
        return ""
    return node.text


def summary_text(node: Node) -> str:
    n = len(node.children)
    if node.kind is NodeKind.OBJECT:
        return f"({n} key{'' if n == 1 else 's'})"
    return f"({n} item{'' if n == 1 else 's'})"
