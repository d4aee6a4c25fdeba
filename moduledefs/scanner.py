"""Low-level tokenizers for module-definition files.

Every parser takes the whole text and a start offset and returns the parsed
value together with the offset just past it, raising
:class:`~moduledefs.errors.ParseFailure` when the input does not match.
"""

from __future__ import annotations

from enum import Enum

from moduledefs.errors import ErrorKind, ParseFailure


class Keyword(Enum):
    """Reserved words of a module-definition file."""

    BASE = "BASE"
    CONSTANT = "CONSTANT"
    DATA = "DATA"
    EXECUTE = "EXECUTE"
    EXPORTS = "EXPORTS"
    HEAPSIZE = "HEAPSIZE"
    LIBRARY = "LIBRARY"
    NAME = "NAME"
    NONAME = "NONAME"
    PRIVATE = "PRIVATE"
    READ = "READ"
    SECTIONS = "SECTIONS"
    SEGMENTS = "SEGMENTS"
    SHARED = "SHARED"
    STACKSIZE = "STACKSIZE"
    STUB = "STUB"
    VERSION = "VERSION"
    WRITE = "WRITE"

    def __str__(self) -> str:
        return self.value


_KEYWORD_ORDER = (
    Keyword.BASE,
    Keyword.CONSTANT,
    Keyword.DATA,
    Keyword.EXPORTS,
    Keyword.EXECUTE,
    Keyword.HEAPSIZE,
    Keyword.LIBRARY,
    Keyword.NAME,
    Keyword.NONAME,
    Keyword.PRIVATE,
    Keyword.READ,
    Keyword.SECTIONS,
    Keyword.SEGMENTS,
    Keyword.SHARED,
    Keyword.STACKSIZE,
    Keyword.STUB,
    Keyword.VERSION,
    Keyword.WRITE,
)

_MULTISPACE = frozenset(" \t\r\n")
_IDENTIFIER_SEPARATORS = frozenset(" \t\n\x0c\r;:=,.")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_DEC_DIGITS = frozenset("0123456789")
_U64_MAX = (1 << 64) - 1
_U16_MAX = (1 << 16) - 1


def parse_keyword(text: str, pos: int) -> tuple[Keyword, int]:
    """Match any keyword at ``pos``."""
    for keyword in _KEYWORD_ORDER:
        if text.startswith(keyword.value, pos):
            return keyword, pos + len(keyword.value)
    raise ParseFailure(pos, ErrorKind.TAG)


def is_keyword(s: str) -> bool:
    """Return True if ``s`` begins with a reserved keyword."""
    try:
        parse_keyword(s, 0)
    except ParseFailure:
        return False
    return True


def expect_keyword(text: str, pos: int, keyword: Keyword) -> int:
    """Match ``keyword`` exactly at ``pos`` and return the offset after it."""
    if text.startswith(keyword.value, pos):
        return pos + len(keyword.value)
    raise ParseFailure(pos, ErrorKind.TAG)


def skip_whitespace(text: str, pos: int) -> int:
    """Skip spaces, tabs, carriage returns and newlines."""
    end = len(text)
    while pos < end and text[pos] in _MULTISPACE:
        pos += 1
    return pos


def _at_line_start(text: str, pos: int) -> bool:
    return pos == 0 or text[pos - 1] == "\n"


def _line_ending(text: str, pos: int) -> int:
    if text.startswith("\n", pos):
        return pos + 1
    if text.startswith("\r\n", pos):
        return pos + 2
    raise ParseFailure(pos, ErrorKind.CRLF)


def parse_comment(text: str, pos: int) -> tuple[str, int]:
    """Parse a ``;`` comment that starts a line; return its text after the ``;``."""
    if not _at_line_start(text, pos):
        raise ParseFailure(pos, ErrorKind.FAIL)
    if not text.startswith(";", pos):
        raise ParseFailure(pos, ErrorKind.CHAR)
    start = pos + 1
    end = start
    while end < len(text):
        ch = text[end]
        if ch == "\n":
            break
        if ch == "\r":
            if text.startswith("\r\n", end):
                break
            raise ParseFailure(end, ErrorKind.TAG)
        end += 1
    return text[start:end], end


def skip_comments(text: str, pos: int) -> int:
    """Skip any run of whitespace and newline-terminated comment lines."""
    while True:
        try:
            _, after = parse_comment(text, pos)
            pos = _line_ending(text, after)
            continue
        except ParseFailure:
            pass
        after = skip_whitespace(text, pos)
        if after == pos:
            return pos
        pos = after


def parse_assign_separator(text: str, pos: int) -> int:
    """Match ``=`` or ``:`` with optional surrounding whitespace."""
    pos = skip_whitespace(text, pos)
    if pos < len(text) and text[pos] in "=:":
        return skip_whitespace(text, pos + 1)
    raise ParseFailure(pos, ErrorKind.CHAR)


def _parse_hex_groups(text: str, pos: int, limit: int) -> tuple[int, int]:
    end = pos
    if end >= len(text) or text[end] not in _HEX_DIGITS:
        raise ParseFailure(pos, ErrorKind.HEX_DIGIT)
    while end < len(text) and (text[end] in _HEX_DIGITS or text[end] == "_"):
        end += 1
    value = int(text[pos:end].replace("_", ""), 16)
    if value > limit:
        raise ParseFailure(pos, ErrorKind.MAP_RES)
    return value, end


def _parse_prefixed_hex(text: str, pos: int, limit: int) -> tuple[int, int]:
    if not text.startswith(("0x", "0X"), pos):
        raise ParseFailure(pos, ErrorKind.TAG)
    return _parse_hex_groups(text, pos + 2, limit)


def _parse_decimal(text: str, pos: int, limit: int) -> tuple[int, int]:
    end = pos
    while end < len(text) and text[end] in _DEC_DIGITS:
        end += 1
    if end == pos:
        raise ParseFailure(pos, ErrorKind.DIGIT)
    value = int(text[pos:end])
    if value > limit:
        raise ParseFailure(pos, ErrorKind.DIGIT)
    return value, end


def _parse_number(text: str, pos: int, limit: int) -> tuple[int, int]:
    try:
        return _parse_prefixed_hex(text, pos, limit)
    except ParseFailure:
        return _parse_decimal(text, pos, limit)


def parse_u64_number(text: str, pos: int) -> tuple[int, int]:
    """Parse a decimal or ``0x``-prefixed hexadecimal 64-bit unsigned number."""
    return _parse_number(text, pos, _U64_MAX)


def parse_u16_number(text: str, pos: int) -> tuple[int, int]:
    """Parse a decimal or ``0x``-prefixed hexadecimal 16-bit unsigned number."""
    return _parse_number(text, pos, _U16_MAX)


def parse_identifier(text: str, pos: int) -> tuple[str, int]:
    """Parse a run of characters up to whitespace or one of ``;:=,.``."""
    end = pos
    while end < len(text) and text[end] not in _IDENTIFIER_SEPARATORS:
        end += 1
    if end == pos:
        raise ParseFailure(pos, ErrorKind.TAKE_WHILE1)
    # A comment prefix may not directly follow an identifier.
    if end < len(text) and text[end] == ";":
        raise ParseFailure(end, ErrorKind.SATISFY)
    return text[pos:end], end


def parse_user_identifier(text: str, pos: int) -> tuple[str, int]:
    """Parse an identifier that is not a reserved keyword."""
    identifier, end = parse_identifier(text, pos)
    if is_keyword(identifier):
        raise ParseFailure(pos, ErrorKind.VERIFY)
    return identifier, end


def parse_quoted_string(text: str, pos: int) -> tuple[str, int]:
    """Parse a non-empty double-quoted string on a single line."""
    if not text.startswith('"', pos):
        raise ParseFailure(pos, ErrorKind.TAG)
    start = pos + 1
    end = start
    while end < len(text) and text[end] not in '"\r\n':
        end += 1
    if end == start:
        raise ParseFailure(start, ErrorKind.IS_NOT)
    if not text.startswith('"', end):
        raise ParseFailure(end, ErrorKind.TAG)
    return text[start:end], end + 1


def parse_string_arg(text: str, pos: int) -> tuple[str, int]:
    """Parse a string argument: a quoted string or a user identifier."""
    try:
        return parse_quoted_string(text, pos)
    except ParseFailure as failure:
        if failure.fatal:
            raise
    return parse_user_identifier(text, pos)