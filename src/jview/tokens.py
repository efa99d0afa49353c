"""Streaming JSON lexer producing tree-building events with byte offsets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from jview.errors import ParseError, UnescapeError
from jview.escapes import unescape_json_string


class NodeKind(Enum):
    OBJECT = auto()
    ARRAY = auto()
    STRING = auto()
    NUMBER = auto()
    BOOL = auto()
    NULL = auto()

    @property
    def is_container(self) -> bool:
        return self is NodeKind.OBJECT or self is NodeKind.ARRAY


class TokenType(Enum):
    VALUE_START = auto()
    KEY = auto()
    SCALAR = auto()
    VALUE_END = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    kind: NodeKind | None = None
    text: str = ""
    start: int = 0  # byte offset
    end: int = 0


_WS = re.compile(rb"[ \t\n\r]*")
_STRING = re.compile(rb'"(?:[^"\\\x00-\x1f]|\\(?:["\\/bfnrt]|u[0-9a-fA-F]{4}))*"')
_NUMBER = re.compile(rb"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_LITERALS = {
    ord("t"): (b"true", NodeKind.BOOL),
    ord("f"): (b"false", NodeKind.BOOL),
    ord("n"): (b"null", NodeKind.NULL),
}

# 파서 상태: 다음에 기대하는 토큰
_VALUE = 0
_KEY_OR_CLOSE = 1  # '{' 직후
_KEY = 2  # ',' 직후 (object)
_COLON = 3
_VALUE_OR_CLOSE = 4  # '[' 직후
_COMMA_OR_CLOSE = 5
_DONE = 6


def _string_error(data: bytes, pos: int) -> ParseError:
    """Locate the first offending byte of a string literal starting at *pos*."""
    i = pos + 1
    n = len(data)
    while i < n:
        b = data[i]
        if b == 0x22:
            break
        if b < 0x20:
            return ParseError("control character in string", i)
        if b == 0x5C:
            nxt = data[i + 1 : i + 2]
            if nxt == b"u":
                hexpart = data[i + 2 : i + 6]
                if len(hexpart) < 4 or not re.fullmatch(rb"[0-9a-fA-F]{4}", hexpart):
                    return ParseError("invalid unicode escape", i)
                i += 6
                continue
            if not nxt or nxt not in b'"\\/bfnrt':
                return ParseError("invalid escape", i)
            i += 2
            continue
        i += 1
    return ParseError("unterminated string", n)


def _decode(data: bytes, start: int, end: int) -> str:
    try:
        return data[start:end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError("invalid UTF-8", start + exc.start) from None


def tokenize(data: bytes | str) -> Iterator[Token]:
    """Yield VALUE_START/KEY/SCALAR/VALUE_END events for one JSON document.

    Raises ParseError with the byte offset of the first malformed byte.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    n = len(data)
    stack: list[NodeKind] = []
    state = _VALUE
    start = 3 if data.startswith(b"\xef\xbb\xbf") else 0
    pos = _WS.match(data, start).end()

    while True:
        if state == _DONE:
            if pos != n:
                raise ParseError("unexpected data after document", pos)
            return
        if pos >= n:
            raise ParseError("unexpected end of input", n)

        b = data[pos]

        if state in (_KEY_OR_CLOSE, _VALUE_OR_CLOSE, _COMMA_OR_CLOSE) and b in (
            0x7D,
            0x5D,
        ):
            expected = 0x7D if stack[-1] is NodeKind.OBJECT else 0x5D
            if b != expected:
                raise ParseError("mismatched closing bracket", pos)
            stack.pop()
            yield Token(TokenType.VALUE_END, start=pos, end=pos + 1)
            pos += 1
            state = _COMMA_OR_CLOSE if stack else _DONE
        elif state == _COMMA_OR_CLOSE:
            if b != 0x2C:
                raise ParseError("expected ',' or closing bracket", pos)
            pos += 1
            state = _KEY if stack[-1] is NodeKind.OBJECT else _VALUE
        elif state in (_KEY_OR_CLOSE, _KEY):
            if b != 0x22:
                raise ParseError("expected object key", pos)
            m = _STRING.match(data, pos)
            if m is None:
                raise _string_error(data, pos)
            body = _decode(data, pos + 1, m.end() - 1)
            try:
                key = unescape_json_string(body, escape_control_characters=False)
            except UnescapeError:
                key = body
            yield Token(
                TokenType.KEY,
                text=key,
                start=pos,
                end=m.end(),
            )
            pos = m.end()
            state = _COLON
        elif state == _COLON:
            if b != 0x3A:
                raise ParseError("expected ':'", pos)
            pos += 1
            state = _VALUE
        else:
            # _VALUE / _VALUE_OR_CLOSE
            if b == 0x7B or b == 0x5B:
                kind = NodeKind.OBJECT if b == 0x7B else NodeKind.ARRAY
                stack.append(kind)
                yield Token(TokenType.VALUE_START, kind, start=pos, end=pos + 1)
                pos += 1
                state = _KEY_OR_CLOSE if kind is NodeKind.OBJECT else _VALUE_OR_CLOSE
            else:
                if b == 0x22:
                    m = _STRING.match(data, pos)
                    if m is None:
                        raise _string_error(data, pos)
                    kind = NodeKind.STRING
                    end = m.end()
                elif b == 0x2D or 0x30 <= b <= 0x39:
                    m = _NUMBER.match(data, pos)
                    if m is None:
                        raise ParseError("invalid number", pos + 1)
                    kind = NodeKind.NUMBER
                    end = m.end()
                elif b in _LITERALS:
                    literal, kind = _LITERALS[b]
                    if data[pos : pos + len(literal)] != literal:
                        raise ParseError("invalid literal", pos)
                    end = pos + len(literal)
                else:
                    raise ParseError("expected value", pos)
                if end < n and (
                    kind is not NodeKind.STRING
                    and (0x30 <= data[end] <= 0x39 or 0x61 <= data[end] <= 0x7A)
                ):
                    raise ParseError("invalid literal", end)
                yield Token(
                    TokenType.SCALAR,
                    kind,
                    text=_decode(data, pos, end),
                    start=pos,
                    end=end,
                )
                pos = end
                state = _COMMA_OR_CLOSE if stack else _DONE

        pos = _WS.match(data, pos).end()
