"""Linker directives stored in the ``.drectve`` section of a COFF object.

A ``.drectve`` section holds command-line style flags such as
``/DEFAULTLIB:"uuid.lib" /ALTERNATENAME:foo=bar``. The section must carry the
``IMAGE_SCN_LNK_INFO`` characteristic to be treated as linker directives.
"""

from __future__ import annotations

import struct
from typing import Iterator, Optional, Tuple

IMAGE_SCN_LNK_INFO = 0x200

_FILE_HEADER = struct.Struct("<HHIIIHH")
_SECTION_HEADER = struct.Struct("<8sIIIIIIHHI")
_SYMBOL_SIZE = 18
_UTF8_BOM = b"\xef\xbb\xbf"
_BLANKS = " \t"
_FLAG_PREFIXES = "/-"


class DirectiveParseError(ValueError):
    """The ``.drectve`` data could not be parsed."""

    def __init__(self) -> None:
        super().__init__("could not parse .drectve section")


class DirectiveSectionError(ValueError):
    """The object file or its ``.drectve`` section data is malformed."""


def _parse_directive(text: str) -> Tuple[Tuple[str, str], int]:
    """Parse one ``/flag:value`` pair; return it and the characters consumed."""
    if not text or text[0] not in _FLAG_PREFIXES:
        raise DirectiveParseError()
    colon = text.find(":", 1)
    if colon <= 1:
        raise DirectiveParseError()
    flag = text[1:colon]
    pos = colon + 1

    value: Optional[str] = None
    if text.startswith('"', pos):
        closing = text.find('"', pos + 1)
        if closing > pos + 1:
            value = text[pos + 1 : closing]
            pos = closing + 1
    if value is None:
        end = pos
        while end < len(text) and text[end] not in _BLANKS:
            end += 1
        if end == pos and pos < len(text):
            raise DirectiveParseError()
        value = text[pos:end]
        pos = end

    while pos < len(text) and text[pos] in _BLANKS:
        pos += 1
    return (flag, value), pos


class DirectiveParser:
    """Iterator over the ``(flag, value)`` pairs of directive text.

    ``offset`` is the byte offset of the unparsed remainder within the
    section data. A parse failure raises :class:`DirectiveParseError` and
    ends the iteration.
    """

    def __init__(self, data: str, offset: int = 0) -> None:
        stripped = data.lstrip(" ")
        skipped = len(data) - len(stripped)
        self.offset = offset + skipped
        self._data = stripped
        self._done = False

    def __iter__(self) -> "DirectiveParser":
        return self

    def __next__(self) -> Tuple[str, str]:
        if self._done or not self._data:
            raise StopIteration
        try:
            pair, consumed = _parse_directive(self._data)
        except DirectiveParseError:
            self._done = True
            raise
        self.offset += len(self._data[:consumed].encode("utf-8"))
        self._data = self._data[consumed:]
        return pair


def _section_name(raw: bytes, data: bytes, string_table: int) -> Optional[str]:
    name = raw.rstrip(b"\0")
    if name.startswith(b"/") and name[1:].isdigit():
        start = string_table + int(name[1:])
        if start >= len(data):
            raise DirectiveSectionError("section name offset out of range")
        end = data.find(b"\0", start)
        name = data[start:] if end == -1 else data[start:end]
    try:
        return name.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _find_section(data: bytes, wanted: str) -> Optional[Tuple[int, bytes]]:
    """Return ``(characteristics, data)`` of the first section named ``wanted``."""
    if len(data) < _FILE_HEADER.size:
        raise DirectiveSectionError("file too small for a COFF header")
    (_, section_count, _, symbol_table, symbol_count, optional_size, _) = (
        _FILE_HEADER.unpack_from(data, 0)
    )
    string_table = symbol_table + symbol_count * _SYMBOL_SIZE
    table_start = _FILE_HEADER.size + optional_size
    table_end = table_start + section_count * _SECTION_HEADER.size
    if table_end > len(data):
        raise DirectiveSectionError("section table out of range")

    for header_offset in range(table_start, table_end, _SECTION_HEADER.size):
        (raw_name, _, _, raw_size, raw_pointer, _, _, _, _, characteristics) = (
            _SECTION_HEADER.unpack_from(data, header_offset)
        )
        if _section_name(raw_name, data, string_table) != wanted:
            continue
        if raw_pointer == 0:
            return characteristics, b""
        if raw_pointer + raw_size > len(data):
            raise DirectiveSectionError("section data out of range")
        return characteristics, data[raw_pointer : raw_pointer + raw_size]
    return None


def parse_linker_directives(data: bytes) -> Optional[DirectiveParser]:
    """Return a parser over the ``.drectve`` section of a COFF object.

    Returns ``None`` if the object has no ``.drectve`` section or the section
    lacks ``IMAGE_SCN_LNK_INFO``. Raises :class:`DirectiveSectionError` if the
    object is malformed or the section is not valid UTF-8.
    """
    section = _find_section(bytes(data), ".drectve")
    if section is None:
        return None
    characteristics, section_data = section
    if not characteristics & IMAGE_SCN_LNK_INFO:
        return None

    offset = 0
    if section_data.startswith(_UTF8_BOM):
        offset = len(_UTF8_BOM)
        section_data = section_data[offset:]
    try:
        text = section_data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DirectiveSectionError(
            f"could not parse .drectve section data as a string: {exc}"
        ) from exc
    return DirectiveParser(text, offset)


def _directives(parser: DirectiveParser) -> Iterator[Tuple[str, str]]:
    try:
        yield from parser
    except DirectiveParseError:
        return


def _open_directives(data: bytes) -> Optional[DirectiveParser]:
    try:
        return parse_linker_directives(data)
    except DirectiveSectionError:
        return None


def parse_defaultlibs(data: bytes) -> Optional[Iterator[str]]:
    """Iterate over the ``/DEFAULTLIB`` values, or ``None`` without directives."""
    parser = _open_directives(data)
    if parser is None:
        return None
    return (
        value
        for flag, value in _directives(parser)
        if flag.upper() == "DEFAULTLIB"
    )


def _normalize_library(library: str) -> str:
    prefix, dot, suffix = library.rpartition(".")
    if dot and suffix.lower() == "lib":
        return prefix
    return library


def parse_defaultlibs_normalized(data: bytes) -> Optional[Iterator[str]]:
    """Like :func:`parse_defaultlibs` with any ``.lib`` extension removed."""
    libraries = parse_defaultlibs(data)
    if libraries is None:
        return None
    return (_normalize_library(library) for library in libraries)


def parse_alternatenames(data: bytes) -> Optional[Iterator[Tuple[str, str]]]:
    """Iterate over ``/ALTERNATENAME`` values as ``(symbol, alias)`` pairs."""
    parser = _open_directives(data)
    if parser is None:
        return None
    return (
        (symbol, alias)
        for flag, value in _directives(parser)
        if flag.upper() == "ALTERNATENAME"
        for symbol, sep, alias in [value.partition("=")]
        if sep
    )