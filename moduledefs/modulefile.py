"""Reading whole module-definition (``.def``) files.

A module-definition file describes the exports of a DLL::

    LIBRARY mylibrary
    EXPORTS
       MyLibraryCreate
       MyLibraryGlobalData                    DATA
       MyLibraryInternal=MyLibraryExternal
       MyLibraryForward=forwarded_dll.func1
       MyLibraryOrdinalThree                  @3

The file must start with a ``LIBRARY`` or ``NAME`` statement. The statements
after it are parsed lazily while iterating.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Callable, Iterator, Optional, Sequence, Tuple, Union

from moduledefs.errors import ParseError, ParseFailure
from moduledefs.exports import (
    ExportsDefinition,
    parse_exports_definition,
    parse_exports_statement_first,
)
from moduledefs.scanner import skip_comments, skip_whitespace
from moduledefs.statements import (
    HeapsizeStatement,
    LibraryStatement,
    NameStatement,
    SectionsDefinition,
    StacksizeStatement,
    StubStatement,
    VersionStatement,
    parse_heapsize_statement,
    parse_library_statement,
    parse_name_statement,
    parse_sections_definition,
    parse_sections_statement_first,
    parse_stacksize_statement,
    parse_stub_statement,
    parse_version_statement,
)

ModuleFileHeader = Union[LibraryStatement, NameStatement]

ModuleStatement = Union[
    ExportsDefinition,
    SectionsDefinition,
    HeapsizeStatement,
    StacksizeStatement,
    StubStatement,
    VersionStatement,
]


class _Context(Enum):
    ROOT = auto()
    EXPORTS = auto()
    SECTIONS = auto()


_Step = Callable[[str, int], Tuple[object, int, _Context]]


def _lexc(parser: Callable[[str, int], Tuple[object, int]], text: str, pos: int):
    """Skip leading comments and whitespace, parse, then skip trailing whitespace."""
    pos = skip_whitespace(text, skip_comments(text, pos))
    value, pos = parser(text, pos)
    return value, skip_whitespace(text, pos)


def _first_of(text: str, pos: int, parsers: Sequence[Callable[[str, int], tuple]]):
    """Return the result of the first parser that matches.

    A fatal failure stops the search; otherwise the failure of the last
    alternative is raised when none match.
    """
    last: Optional[ParseFailure] = None
    for parser in parsers:
        try:
            return parser(text, pos)
        except ParseFailure as failure:
            if failure.fatal:
                raise
            last = failure
    assert last is not None
    raise last


def _switching(parser, context: _Context) -> _Step:
    def step(text: str, pos: int):
        value, pos = parser(text, pos)
        return value, pos, context

    return step


def _root_statement(text: str, pos: int):
    return _first_of(
        text,
        pos,
        (
            parse_heapsize_statement,
            parse_stacksize_statement,
            parse_stub_statement,
            parse_version_statement,
        ),
    )


_switch_root = _switching(_root_statement, _Context.ROOT)
_switch_exports = _switching(parse_exports_statement_first, _Context.EXPORTS)
_switch_sections = _switching(parse_sections_statement_first, _Context.SECTIONS)

_STEPS: dict = {
    _Context.ROOT: (
        _switch_exports,
        _switch_sections,
        _switching(parse_heapsize_statement, _Context.ROOT),
        _switching(parse_stacksize_statement, _Context.ROOT),
        _switching(parse_stub_statement, _Context.ROOT),
        _switching(parse_version_statement, _Context.ROOT),
    ),
    _Context.EXPORTS: (
        _switching(parse_exports_definition, _Context.EXPORTS),
        _switch_root,
        _switch_sections,
    ),
    _Context.SECTIONS: (
        _switching(parse_sections_definition, _Context.SECTIONS),
        _switch_exports,
        _switch_root,
    ),
}


def _parse_header(text: str, pos: int) -> Tuple[ModuleFileHeader, int]:
    def header(text: str, pos: int):
        return _lexc(
            lambda t, p: _first_of(t, p, (parse_library_statement, parse_name_statement)),
            text,
            pos,
        )

    return _lexc(header, text, pos)


class ModuleFile:
    """A parsed module-definition file."""

    def __init__(self, header: Optional[ModuleFileHeader], text: str, position: int) -> None:
        self.header = header
        self._text = text
        self._position = position

    @classmethod
    def parse(cls, data: str) -> "ModuleFile":
        """Parse the header of ``data``; the remaining statements are read lazily."""
        try:
            header, position = _parse_header(data, 0)
        except ParseFailure as failure:
            raise ParseError.from_failure(data, failure) from None
        return cls(header, data, position)

    def module_name(self) -> Optional[str]:
        """The ``LIBRARY`` library name or the ``NAME`` application name."""
        if isinstance(self.header, LibraryStatement):
            return self.header.library
        if isinstance(self.header, NameStatement):
            return self.header.application
        return None

    def library_name(self) -> Optional[str]:
        """The library name if the file starts with a ``LIBRARY`` statement."""
        if isinstance(self.header, LibraryStatement):
            return self.header.library
        return None

    def base_address(self) -> Optional[int]:
        """The ``BASE=address`` value of the header statement, if any."""
        if self.header is None:
            return None
        return self.header.base_address

    def statements(self) -> Iterator[ModuleStatement]:
        """Yield the statements after the header.

        Raises :class:`ParseError` at the first statement that cannot be
        parsed; iteration ends there.
        """
        text = self._text
        pos = self._position
        context = _Context.ROOT
        while pos < len(text):
            steps = _STEPS[context]
            try:
                value, pos, context = _lexc(
                    lambda t, p: _pack(_first_of(t, p, steps)), text, pos
                )
            except ParseFailure as failure:
                raise ParseError.from_failure(text, failure) from None
            yield value

    def exports(self) -> Iterator[ExportsDefinition]:
        """Yield only the export definitions of the file."""
        for statement in self.statements():
            if isinstance(statement, ExportsDefinition):
                yield statement


def _pack(result: Tuple[object, int, _Context]):
    """Adapt a ``(value, pos, context)`` step result to ``((value, context), pos)``."""
    value, pos, context = result
    return (value, context), pos


def _unpack_step(result):
    (value, context), pos = result
    return value, pos, context


# ``statements`` needs the context carried alongside the value through _lexc.
def _statements_step(text: str, pos: int, context: _Context):
    return _unpack_step(
        _lexc(lambda t, p: _pack(_first_of(t, p, _STEPS[context])), text, pos)
    )


def _module_statements(self: ModuleFile) -> Iterator[ModuleStatement]:
    text = self._text
    pos = self._position
    context = _Context.ROOT
    while pos < len(text):
        try:
            value, pos, context = _statements_step(text, pos, context)
        except ParseFailure as failure:
            raise ParseError.from_failure(text, failure) from None
        yield value


_module_statements.__doc__ = ModuleFile.statements.__doc__
ModuleFile.statements = _module_statements  # type: ignore[method-assign]