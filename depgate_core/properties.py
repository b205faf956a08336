"""Reader for the key-value properties text used by dependency manifests."""

from __future__ import annotations

from typing import Iterator

_SEPARATORS = frozenset("=:")
_WHITESPACE = frozenset(" \t\f")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def parse_properties(text: str) -> dict[str, str]:
    """Parse properties ``text`` into an ordered mapping.

    Supports ``#``/``!`` comments, ``=``, ``:`` or whitespace separators,
    backslash continuation lines and the usual escapes including ``\\uXXXX``.
    A repeated key keeps its first position and its last value.
    """

    result: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_line(line)
        result[_unescape(key)] = _unescape(value)
    return result


def _logical_lines(text: str) -> Iterator[str]:
    pending: str | None = None
    for raw in text.splitlines():
        line = raw.lstrip(" \t\f")
        if pending is None:
            if not line or line[0] in "#!":
                continue
        else:
            line = pending + line
            pending = None
        if _ends_with_continuation(line):
            pending = line[:-1]
            continue
        yield line
    if pending is not None and pending:
        yield pending


def _ends_with_continuation(line: str) -> bool:
    count = 0
    for ch in reversed(line):
        if ch != "\\":
            break
        count += 1
    return count % 2 == 1


def _split_line(line: str) -> tuple[str, str]:
    index = 0
    length = len(line)
    while index < length:
        ch = line[index]
        if ch == "\\":
            index += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        index += 1
    key = line[:index]
    while index < length and line[index] in _WHITESPACE:
        index += 1
    if index < length and line[index] in _SEPARATORS:
        index += 1
        while index < length and line[index] in _WHITESPACE:
            index += 1
    return key, line[index:]


def _unescape(value: str) -> str:
    if "\\" not in value:
        return value
    out: list[str] = []
    index = 0
    length = len(value)
    while index < length:
        ch = value[index]
        if ch != "\\" or index + 1 >= length:
            out.append(ch)
            index += 1
            continue
        nxt = value[index + 1]
        if nxt == "u":
            code = value[index + 2 : index + 6]
            if len(code) != 4 or any(c not in "0123456789abcdefABCDEF" for c in code):
                raise ValueError(f"malformed \\uXXXX escape: {value[index:index + 6]!r}")
            out.append(chr(int(code, 16)))
            index += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        index += 2
    return "".join(out)
