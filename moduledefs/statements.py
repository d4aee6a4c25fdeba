"""Parsers for the simple statements of a module-definition file.

Covers ``BASE``, ``HEAPSIZE``, ``STACKSIZE``, ``STUB``, ``VERSION``,
``LIBRARY``, ``NAME`` and ``SECTIONS`` / ``SEGMENTS``. Every parser takes the
whole text and a start offset and returns the parsed value together with the
offset just past it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Flag
from typing import Callable, Optional, Tuple, TypeVar

from moduledefs.errors import ErrorKind, ParseFailure
from moduledefs.scanner import (
    Keyword,
    expect_keyword,
    parse_assign_separator,
    parse_string_arg,
    parse_u16_number,
    parse_u64_number,
    skip_comments,
    skip_whitespace,
)

T = TypeVar("T")
Parser = Callable[[str, int], Tuple[T, int]]

_MULTISPACE = frozenset(" \t\r\n")


@dataclass(frozen=True)
class BaseStatement:
    """``BASE=address``."""

    address: int


@dataclass(frozen=True)
class HeapsizeStatement:
    """``HEAPSIZE=reserve[,commit]``."""

    reserve: int = 0
    commit: Optional[int] = None


@dataclass(frozen=True)
class StacksizeStatement:
    """``STACKSIZE reserve[,commit]``."""

    reserve: int
    commit: Optional[int] = None


@dataclass(frozen=True)
class StubStatement:
    """``STUB:filename``."""

    filename: str


@dataclass(frozen=True)
class VersionStatement:
    """``VERSION major[.minor]``."""

    major: int = 0
    minor: Optional[int] = 0


@dataclass(frozen=True)
class LibraryStatement:
    """``LIBRARY [library] [BASE=address]``."""

    library: str
    base_address: Optional[int] = None


@dataclass(frozen=True)
class NameStatement:
    """``NAME [application] [BASE=address]``."""

    application: str
    base_address: Optional[int] = None


class SectionFlags(Flag):
    """Access specifiers of a ``SECTIONS`` definition."""

    EXECUTE = 1
    READ = 1 << 1
    WRITE = 1 << 2
    SHARED = 1 << 3


@dataclass(frozen=True)
class SectionsDefinition:
    """One definition of a ``SECTIONS`` statement."""

    section_name: str = ""
    specifier: SectionFlags = field(default_factory=lambda: SectionFlags(0))

    def has_execute_modifier(self) -> bool:
        return SectionFlags.EXECUTE in self.specifier

    def has_read_modifier(self) -> bool:
        return SectionFlags.READ in self.specifier

    def has_write_modifier(self) -> bool:
        return SectionFlags.WRITE in self.specifier

    def has_shared_modifier(self) -> bool:
        return SectionFlags.SHARED in self.specifier


def _cut(parser: Parser) -> Parser:
    """Make any failure of ``parser`` fatal."""

    def wrapped(text: str, pos: int):
        try:
            return parser(text, pos)
        except ParseFailure as failure:
            if failure.fatal:
                raise
            raise ParseFailure(failure.offset, failure.kind, fatal=True) from failure

    return wrapped


def _optional(parser: Parser, text: str, pos: int):
    """Apply ``parser``; on a recoverable failure return ``(None, pos)``."""
    try:
        return parser(text, pos)
    except ParseFailure as failure:
        if failure.fatal:
            raise
        return None, pos


def _lex(parser: Parser) -> Parser:
    def wrapped(text: str, pos: int):
        value, pos = parser(text, skip_whitespace(text, pos))
        return value, skip_whitespace(text, pos)

    return wrapped


def _lexc(parser: Parser) -> Parser:
    def wrapped(text: str, pos: int):
        return _lex(parser)(text, skip_comments(text, pos))

    return wrapped


def _keyword(keyword: Keyword) -> Callable[[str, int], int]:
    return lambda text, pos: expect_keyword(text, pos, keyword)


def _statement(text: str, pos: int, keyword_parser, args_parser: Parser):
    """``keyword`` followed by whitespace and the arguments (both cut)."""
    pos = keyword_parser(text, pos)
    if pos >= len(text) or text[pos] not in _MULTISPACE:
        raise ParseFailure(pos, ErrorKind.MULTISPACE, fatal=True)
    return _cut(_lex(args_parser))(text, skip_whitespace(text, pos))


def _statement_assign(text: str, pos: int, keyword_parser, value_parser: Parser):
    """``keyword = value`` or ``keyword : value``."""
    pos = keyword_parser(text, pos)
    pos = parse_assign_separator(text, pos)
    value, pos = value_parser(text, pos)
    return value, skip_whitespace(text, pos)


def _char(ch: str) -> Callable[[str, int], int]:
    def match(text: str, pos: int) -> int:
        if text.startswith(ch, pos):
            return pos + 1
        raise ParseFailure(pos, ErrorKind.CHAR)

    return match


def _preceded(prefix, parser: Parser) -> Parser:
    def wrapped(text: str, pos: int):
        return parser(text, prefix(text, pos))

    return wrapped


def parse_base_statement(text: str, pos: int) -> tuple[BaseStatement, int]:
    """Parse ``BASE=address``."""
    address, pos = _statement_assign(
        text, pos, _keyword(Keyword.BASE), _cut(parse_u64_number)
    )
    return BaseStatement(address), pos


def _sized_arguments(separator: str, number: Parser, cut_second: bool) -> Parser:
    second = _cut(number) if cut_second else number

    def parse(text: str, pos: int):
        first, pos = number(text, pos)
        rest, pos = _optional(_preceded(_char(separator), second), text, pos)
        return (first, rest), pos

    return parse


def parse_heapsize_statement(text: str, pos: int) -> tuple[HeapsizeStatement, int]:
    """Parse ``HEAPSIZE=reserve[,commit]``."""
    (reserve, commit), pos = _statement_assign(
        text,
        pos,
        _keyword(Keyword.HEAPSIZE),
        _sized_arguments(",", parse_u64_number, cut_second=True),
    )
    return HeapsizeStatement(reserve, commit), pos


def parse_stacksize_statement(text: str, pos: int) -> tuple[StacksizeStatement, int]:
    """Parse ``STACKSIZE reserve[,commit]``."""
    (reserve, commit), pos = _statement(
        text,
        pos,
        _keyword(Keyword.STACKSIZE),
        _sized_arguments(",", parse_u64_number, cut_second=False),
    )
    return StacksizeStatement(reserve, commit), pos


def parse_stub_statement(text: str, pos: int) -> tuple[StubStatement, int]:
    """Parse ``STUB:filename``."""
    filename, pos = _statement_assign(
        text, pos, _keyword(Keyword.STUB), parse_string_arg
    )
    return StubStatement(filename), pos


def parse_version_statement(text: str, pos: int) -> tuple[VersionStatement, int]:
    """Parse ``VERSION major[.minor]``."""
    (major, minor), pos = _statement(
        text,
        pos,
        _keyword(Keyword.VERSION),
        _sized_arguments(".", parse_u16_number, cut_second=False),
    )
    return VersionStatement(major, minor), pos


def _parse_library_args(text: str, pos: int):
    name, pos = _lex(parse_string_arg)(text, pos)
    base, pos = _optional(_lex(parse_base_statement), text, pos)
    return (name, base), pos


def parse_library_statement(text: str, pos: int) -> tuple[LibraryStatement, int]:
    """Parse ``LIBRARY [library] [BASE=address]``."""
    (name, base), pos = _statement(
        text, pos, _keyword(Keyword.LIBRARY), _parse_library_args
    )
    return LibraryStatement(name, base.address if base else None), pos


def _parse_name_args(text: str, pos: int):
    application, pos = _lex(parse_string_arg)(text, pos)
    base, pos = _optional(parse_base_statement, text, pos)
    return (application, base), pos


def parse_name_statement(text: str, pos: int) -> tuple[NameStatement, int]:
    """Parse ``NAME [application] [BASE=address]``."""
    (application, base), pos = _statement(
        text, pos, _keyword(Keyword.NAME), _parse_name_args
    )
    return NameStatement(application, base.address if base else None), pos


_SECTION_SPECIFIERS = (
    (Keyword.EXECUTE, SectionFlags.EXECUTE),
    (Keyword.READ, SectionFlags.READ),
    (Keyword.WRITE, SectionFlags.WRITE),
    (Keyword.SHARED, SectionFlags.SHARED),
)


def _parse_section_specifier(text: str, pos: int) -> tuple[SectionFlags, int]:
    flags = SectionFlags(0)
    while True:
        for keyword, flag in _SECTION_SPECIFIERS:
            if text.startswith(keyword.value, pos):
                flags |= flag
                pos += len(keyword.value)
                break
        else:
            return flags, pos


def parse_sections_definition(text: str, pos: int) -> tuple[SectionsDefinition, int]:
    """Parse ``section_name [EXECUTE|READ|WRITE|SHARED]...``."""
    name, pos = _lex(parse_string_arg)(text, pos)
    specifier, pos = _parse_section_specifier(text, pos)
    return SectionsDefinition(name, specifier), pos


def _sections_keyword(text: str, pos: int) -> int:
    try:
        return expect_keyword(text, pos, Keyword.SECTIONS)
    except ParseFailure:
        return expect_keyword(text, pos, Keyword.SEGMENTS)


def parse_sections_statement_first(
    text: str, pos: int
) -> tuple[SectionsDefinition, int]:
    """Parse a ``SECTIONS`` (or ``SEGMENTS``) keyword and its first definition."""
    return _statement(
        text, pos, _sections_keyword, _lexc(parse_sections_definition)
    )