"""Go string literal quoting, shared by the source and go.mod rewriters."""

from __future__ import annotations

import re
from typing import List

__all__ = [
    "unquote_go_string",
    "quote_go_string",
]

_ESCAPE_RE = re.compile(
    r'\\(?:([abfnrtv\\"])|x([0-9a-fA-F]{2})|u([0-9a-fA-F]{4})|U([0-9a-fA-F]{8})|([0-7]{3}))'
)
_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}


def unquote_go_string(literal: str) -> str:
    """Return the value of a Go string literal.

    Both interpreted (``"..."``) and raw (`` `...` ``) literals are
    accepted.  Raises :class:`ValueError` for anything else.
    """
    if len(literal) >= 2 and literal[0] == "`" and literal[-1] == "`":
        body = literal[1:-1]
        if "`" in body:
            raise ValueError(f"invalid raw string literal {literal!r}")
        # carriage returns are discarded from raw strings
        return body.replace("\r", "")
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise ValueError(f"not a string literal: {literal!r}")
    body = literal[1:-1]
    if "\n" in body:
        raise ValueError(f"newline in string literal {literal!r}")
    out: List[str] = []
    pos = 0
    while pos < len(body):
        ch = body[pos]
        if ch == '"':
            raise ValueError(f"unescaped quote in {literal!r}")
        if ch != "\\":
            out.append(ch)
            pos += 1
            continue
        m = _ESCAPE_RE.match(body, pos)
        if m is None:
            raise ValueError(f"invalid escape sequence in {literal!r}")
        simple, hex2, short_u, long_u, octal = m.groups()
        if simple:
            out.append(_SIMPLE_ESCAPES[simple])
        elif hex2:
            out.append(chr(int(hex2, 16)))
        elif octal:
            value = int(octal, 8)
            if value > 255:
                raise ValueError(f"octal escape out of range in {literal!r}")
            out.append(chr(value))
        else:
            out.append(chr(int(short_u or long_u, 16)))
        pos = m.end()
    return "".join(out)


def quote_go_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
