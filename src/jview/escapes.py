"""JSON string literal escaping helpers."""

from __future__ import annotations

from jview.errors import UnescapeError

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

# 화면에 그대로 내보내면 안 되는 제어 문자는 escape 표기로 유지
_KEEP_ESCAPED = {"b": "\\b", "f": "\\f", "n": "\\n", "r": "\\r", "t": "\\t"}

_REVERSE_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def is_control(ch: str) -> bool:
    cp = ord(ch)
    return cp <= 0x1F or 0x7F <= cp <= 0x9F


def unescape_json_string(raw: str, escape_control_characters: bool = True) -> str:
    """Decode the body of a JSON string literal (without its quotes).

    The body is assumed to be syntactically valid JSON.  When
    *escape_control_characters* is set, C0/C1 control characters come back
    as escape sequences instead of raw characters.

    Raises UnescapeError for a lone low surrogate or a high surrogate that is
    not followed by a low surrogate.  ``index`` counts characters from the
    opening quote.
    """
    out: list[str] = []
    n = len(raw)
    i = 0
    index = 1
    while i < n:
        ch = raw[i]
        i += 1
        index += 1
        if ch != "\\":
            if escape_control_characters and is_control(ch):
                out.append(f"\\u{ord(ch):04X}")
            else:
                out.append(ch)
            continue

        esc = raw[i]
        i += 1
        index += 1
        if esc != "u":
            if escape_control_characters and esc in _KEEP_ESCAPED:
                out.append(_KEEP_ESCAPED[esc])
            else:
                out.append(_SIMPLE_ESCAPES[esc])
            continue

        digits = raw[i : i + 4]
        i += 4
        index += 4
        cp = int(digits, 16)
        if 0xDC00 <= cp <= 0xDFFF:
            raise UnescapeError(
                index - 6, digits, f'unexpected low surrogate "\\u{digits}"'
            )
        if 0xD800 <= cp <= 0xDBFF:
            marker = raw[i : i + 2]
            i += 2
            if marker == "\\u":
                index += 2
                low_digits = raw[i : i + 4]
                i += 4
                index += 4
                low = int(low_digits, 16)
                if 0xDC00 <= low <= 0xDFFF:
                    out.append(chr(0x10000 + (cp - 0xD800) * 0x400 + (low - 0xDC00)))
                    continue
            raise UnescapeError(
                index,
                digits,
                f'high surrogate "\\u{digits}" not followed by low surrogate',
            )
        decoded = chr(cp)
        if escape_control_characters and is_control(decoded):
            out.append(f"\\u{digits}")
        else:
            out.append(decoded)
    return "".join(out)


def safe_unescape(raw: str) -> str:
    """Unescape for display; fall back to the raw body on surrogate errors."""
    if "\\" not in raw and raw.isprintable():
        return raw
    try:
        return unescape_json_string(raw, escape_control_characters=True)
    except UnescapeError:
        return raw


def escape_json_string(text: str) -> str:
    """Escape quotes, backslashes and control characters; keep other text."""
    out: list[str] = []
    for ch in text:
        rep = _REVERSE_ESCAPES.get(ch)
        if rep is not None:
            out.append(rep)
        elif is_control(ch):
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)
