"""Exceptions raised by the viewer core."""

from __future__ import annotations


class JviewError(Exception):
    """Base class for user-facing viewer errors."""


class ParseError(JviewError):
    """Malformed JSON input; ``offset`` is the byte offset of the problem."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} at byte {offset}")
        self.message = message
        self.offset = offset


class SearchError(JviewError):
    """Search pattern failed to compile."""


class UnescapeError(JviewError):
    """Invalid surrogate sequence inside a JSON string literal."""

    def __init__(self, index: int, codepoint: str, reason: str) -> None:
        super().__init__(f"unescaping error at char {index}: {reason}")
        self.index = index
        self.codepoint = codepoint
