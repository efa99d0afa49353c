"""Terminal display-column accounting for rendered text."""

from __future__ import annotations

import unicodedata
from functools import lru_cache
from typing import Iterator

PLACEHOLDER = "�"

# 화면에 그릴 수 없는 코드포인트 (제어/서로게이트/사설/미할당)
_UNSUPPORTED = frozenset(("Cc", "Cs", "Co", "Cn"))
_ZERO_WIDTH = frozenset(("Mn", "Me", "Cf"))


@lru_cache(maxsize=4096)
def glyph_for(ch: str) -> tuple[str, int]:
    """Return ``(glyph, columns)`` for one codepoint.

    Combining marks and format characters take 0 columns, East Asian wide
    and fullwidth characters (CJK, most emoji) take 2, and unsupported
    codepoints are replaced by a 1-column placeholder.
    """
    if " " <= ch < "\x7f":
        return ch, 1
    category = unicodedata.category(ch)
    if category in _UNSUPPORTED:
        return PLACEHOLDER, 1
    if category in _ZERO_WIDTH:
        return ch, 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return ch, 2
    return ch, 1


def char_width(ch: str) -> int:
    return glyph_for(ch)[1]


def text_width(text: str) -> int:
    if text.isascii() and text.isprintable():
        return len(text)
    return sum(glyph_for(ch)[1] for ch in text)


def cells(text: str) -> Iterator[tuple[str, int]]:
    """Yield ``(glyph, columns)`` with zero-width marks folded into the
    preceding glyph."""
    pending: str | None = None
    pending_w = 0
    for ch in text:
        glyph, w = glyph_for(ch)
        if w == 0:
            if pending is None:
                # leading combining mark: nothing to attach to
                pending, pending_w = PLACEHOLDER, 1
            pending += glyph
            continue
        if pending is not None:
            yield pending, pending_w
        pending, pending_w = glyph, w
    if pending is not None:
        yield pending, pending_w
