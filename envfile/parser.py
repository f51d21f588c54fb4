from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator

log = logging.getLogger(__name__)

_WHITESPACE = " \t\r\n"
_KEY_START = frozenset(string.ascii_letters + "_")
_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


@dataclass(frozen=True)
class ParseOptions:
    overwrite: bool = True
    # Reserved: no ${VAR} substitution is performed.
    interpolate: bool = False
    strip_quotes: bool = True
    trim_whitespace: bool = True


DEFAULT_OPTIONS = ParseOptions()


@dataclass(frozen=True)
class Entry:
    key: str
    value: str
    line_number: int


class QuoteState(Enum):
    NONE = ""
    SINGLE = "'"
    DOUBLE = '"'


def trim_whitespace(text: str) -> str:
    return text.strip(_WHITESPACE)


def _decode_escapes(text: str) -> str:
    out: list[str] = []
    escape = False
    for ch in text:
        if escape:
            # Unknown escapes keep both characters.
            out.append(_ESCAPES.get(ch, "\\" + ch))
            escape = False
        elif ch == "\\":
            escape = True
        else:
            out.append(ch)
    if escape:
        out.append("\\")
    return "".join(out)


def process_value(raw: str, options: ParseOptions = DEFAULT_OPTIONS) -> str:
    """Trim, unquote and unescape a raw value.

    Only one pair of matching outer quotes is removed. Escape decoding runs
    for bare, single-quoted and double-quoted values alike.
    """
    value = trim_whitespace(raw) if options.trim_whitespace else raw
    if options.strip_quotes and len(value) >= 2 and value[0] in "\"'" and value[-1] == value[0]:
        value = value[1:-1]
    return _decode_escapes(value)


def _inline_comment_start(value: str) -> int | None:
    """Index of the whitespace that opens an inline comment, if any."""
    state = QuoteState.NONE
    for i, ch in enumerate(value):
        if state is QuoteState.NONE:
            if ch in "\"'":
                state = QuoteState(ch)
            elif ch == "#" and i > 0 and value[i - 1] in " \t":
                return i - 1
        elif ch == state.value and value[i - 1] != "\\":
            state = QuoteState.NONE
    return None


def parse_line(line: str, options: ParseOptions = DEFAULT_OPTIONS) -> tuple[str, str] | None:
    """Split one ``KEY=VALUE`` line; return None for blanks, comments and malformed lines."""
    text = trim_whitespace(line) if options.trim_whitespace else line
    if not text or text.startswith("#"):
        return None

    key, sep, value = text.partition("=")
    if not sep:
        return None
    if options.trim_whitespace:
        key = trim_whitespace(key)
    if not key or key[0] not in _KEY_START:
        return None

    cut = _inline_comment_start(value)
    if cut is not None:
        value = value[:cut]
    return key, process_value(value, options)


def _chomp(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def iter_entries(lines: Iterable[str], options: ParseOptions = DEFAULT_OPTIONS) -> Iterator[Entry]:
    for line_number, raw_line in enumerate(lines, start=1):
        parsed = parse_line(_chomp(raw_line), options)
        if parsed is None:
            log.debug("skipping line %d", line_number)
            continue
        key, value = parsed
        yield Entry(key=key, value=value, line_number=line_number)


def read_entries(path: Path | str, options: ParseOptions = DEFAULT_OPTIONS) -> list[Entry]:
    """Parse a .env file without touching the environment."""
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        return list(iter_entries(handle, options))
