"""Parsers for ``EXPORTS`` statements of a module-definition file.

A definition has the form::

    entryname[=internal_name|other_module.exported_name] [@ordinal [NONAME]] [PRIVATE|DATA]

Every parser takes the whole text and a start offset and returns the parsed
value together with the offset just past it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple, TypeVar, Union

from moduledefs.errors import ErrorKind, ParseFailure
from moduledefs.scanner import (
    Keyword,
    expect_keyword,
    parse_string_arg,
    parse_u16_number,
    skip_comments,
    skip_whitespace,
)

T = TypeVar("T")
Parser = Callable[[str, int], Tuple[T, int]]

_MULTISPACE = frozenset(" \t\r\n")
_U16_MAX = (1 << 16) - 1


class DefinitionAttribute(Enum):
    """Attribute of an export definition."""

    PRIVATE = "PRIVATE"
    DATA = "DATA"


@dataclass(frozen=True)
class DefinitionOrdinal:
    """``@ordinal [NONAME]`` of an export definition."""

    value: int = 1
    noname: bool = False


@dataclass(frozen=True)
class InternalName:
    """``entryname=internal_name``."""

    name: str


@dataclass(frozen=True)
class ExternalAlias:
    """``entryname=other_module.exported_name``.

    ``exported_name`` is a name, or an ordinal when written as ``#number``.
    """

    other_module: str
    exported_name: Union[str, int]


EntrynameAlias = Union[InternalName, ExternalAlias]


@dataclass(frozen=True)
class ExportsDefinition:
    """One definition of an ``EXPORTS`` statement."""

    entryname: str = ""
    entryname_alias: Optional[EntrynameAlias] = None
    ordinal: Optional[DefinitionOrdinal] = None
    attribute: Optional[DefinitionAttribute] = None

    def internal_name(self) -> Optional[str]:
        """The ``internal_name`` alias, if present."""
        if isinstance(self.entryname_alias, InternalName):
            return self.entryname_alias.name
        return None

    def other_module(self) -> Optional[Tuple[str, Union[str, int]]]:
        """The ``(other_module, exported_name)`` pair, if present."""
        if isinstance(self.entryname_alias, ExternalAlias):
            return self.entryname_alias.other_module, self.entryname_alias.exported_name
        return None

    def ordinal_value(self) -> Optional[int]:
        return self.ordinal.value if self.ordinal else None

    def ordinal_noname(self) -> bool:
        return bool(self.ordinal and self.ordinal.noname)

    def has_private_attribute(self) -> bool:
        return self.attribute is DefinitionAttribute.PRIVATE

    def has_data_attribute(self) -> bool:
        return self.attribute is DefinitionAttribute.DATA


def _lex(parser: Parser) -> Parser:
    def wrapped(text: str, pos: int):
        value, pos = parser(text, skip_whitespace(text, pos))
        return value, skip_whitespace(text, pos)

    return wrapped


def _fatal(parser: Parser, text: str, pos: int):
    """Apply ``parser``, turning any failure into a fatal one."""
    try:
        return parser(text, pos)
    except ParseFailure as failure:
        if failure.fatal:
            raise
        raise ParseFailure(failure.offset, failure.kind, fatal=True) from failure


def _optional(parser: Parser, text: str, pos: int):
    """Apply ``parser``; on a recoverable failure return ``(None, pos)``."""
    try:
        return parser(text, pos)
    except ParseFailure as failure:
        if failure.fatal:
            raise
        return None, pos


def _expect_char(text: str, pos: int, ch: str) -> int:
    if text.startswith(ch, pos):
        return pos + 1
    raise ParseFailure(pos, ErrorKind.CHAR)


def _parse_decimal_u16(text: str, pos: int) -> Tuple[int, int]:
    end = pos
    while end < len(text) and text[end].isascii() and text[end].isdigit():
        end += 1
    if end == pos:
        raise ParseFailure(pos, ErrorKind.DIGIT)
    value = int(text[pos:end])
    if value > _U16_MAX:
        raise ParseFailure(pos, ErrorKind.DIGIT)
    return value, end


def _parse_exported_name(text: str, pos: int) -> Tuple[Union[str, int], int]:
    if text.startswith("#", pos):
        try:
            return _parse_decimal_u16(text, pos + 1)
        except ParseFailure as failure:
            if failure.fatal:
                raise
    return parse_string_arg(text, pos)


def _parse_entryname_alias(text: str, pos: int) -> Tuple[EntrynameAlias, int]:
    try:
        module, after = parse_string_arg(text, pos)
        after = _expect_char(text, after, ".")
        exported, after = _parse_exported_name(text, after)
        return ExternalAlias(module, exported), after
    except ParseFailure as failure:
        if failure.fatal:
            raise
    name, after = parse_string_arg(text, pos)
    return InternalName(name), after


def _parse_alias_clause(text: str, pos: int) -> Tuple[EntrynameAlias, int]:
    pos = skip_whitespace(text, _expect_char(text, pos, "="))
    return _fatal(_lex(_parse_entryname_alias), text, pos)


def _parse_ordinal(text: str, pos: int) -> Tuple[DefinitionOrdinal, int]:
    value, pos = parse_u16_number(text, pos)
    pos = skip_whitespace(text, pos)
    noname = text.startswith(Keyword.NONAME.value, pos)
    if noname:
        pos += len(Keyword.NONAME.value)
    return DefinitionOrdinal(value, noname), skip_whitespace(text, pos)


def _parse_ordinal_clause(text: str, pos: int) -> Tuple[DefinitionOrdinal, int]:
    pos = _expect_char(text, pos, "@")
    return _fatal(_parse_ordinal, text, pos)


def _parse_attribute(text: str, pos: int) -> Tuple[DefinitionAttribute, int]:
    for attribute in (DefinitionAttribute.PRIVATE, DefinitionAttribute.DATA):
        if text.startswith(attribute.value, pos):
            return attribute, pos + len(attribute.value)
    raise ParseFailure(pos, ErrorKind.TAG)


def parse_exports_definition(text: str, pos: int) -> Tuple[ExportsDefinition, int]:
    """Parse a single export definition."""
    entryname, pos = _lex(parse_string_arg)(text, pos)
    alias, pos = _optional(_parse_alias_clause, text, pos)
    ordinal, pos = _optional(_parse_ordinal_clause, text, pos)
    attribute, pos = _optional(_lex(_parse_attribute), text, pos)
    return ExportsDefinition(entryname, alias, ordinal, attribute), pos


def _parse_definition_with_comments(text: str, pos: int) -> Tuple[ExportsDefinition, int]:
    return parse_exports_definition(text, skip_comments(text, pos))


def parse_exports_statement(text: str, pos: int) -> Tuple[List[ExportsDefinition], int]:
    """Parse ``EXPORTS`` followed by every definition that follows it."""
    pos = expect_keyword(text, pos, Keyword.EXPORTS)
    if pos >= len(text) or text[pos] not in _MULTISPACE:
        raise ParseFailure(pos, ErrorKind.MULTISPACE)
    pos = skip_whitespace(text, pos)
    definitions: List[ExportsDefinition] = []
    while True:
        definition, pos = _optional(_parse_definition_with_comments, text, pos)
        if definition is None:
            return definitions, pos
        definitions.append(definition)


def parse_exports_statement_first(text: str, pos: int) -> Tuple[ExportsDefinition, int]:
    """Parse the ``EXPORTS`` keyword and its first definition."""
    pos = expect_keyword(text, pos, Keyword.EXPORTS)
    if pos >= len(text) or text[pos] not in _MULTISPACE:
        raise ParseFailure(pos, ErrorKind.MULTISPACE, fatal=True)
    pos = skip_whitespace(text, pos)
    return _fatal(_lex(_parse_definition_with_comments), text, pos)