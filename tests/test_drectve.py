import struct

import pytest

from moduledefs.drectve import (
    IMAGE_SCN_LNK_INFO,
    DirectiveParseError,
    DirectiveParser,
    DirectiveSectionError,
    parse_alternatenames,
    parse_defaultlibs,
    parse_defaultlibs_normalized,
    parse_linker_directives,
)


def build_coff(sections):
    """Build a minimal COFF object from ``(name, characteristics, data)``."""
    header_size = 20 + 40 * len(sections)
    headers = b""
    body = b""
    for name, characteristics, payload in sections:
        pointer = header_size + len(body) if payload else 0
        headers += struct.pack(
            "<8sIIIIIIHHI",
            name.encode(),
            0,
            0,
            len(payload),
            pointer,
            0,
            0,
            0,
            0,
            characteristics,
        )
        body += payload
    file_header = struct.pack("<HHIIIHH", 0x8664, len(sections), 0, 0, 0, 0, 0)
    return file_header + headers + body


def drectve_object(text, characteristics=IMAGE_SCN_LNK_INFO, raw=None):
    payload = raw if raw is not None else text.encode()
    return build_coff([(".text", 0x60000020, b"\xc3"), (".drectve", characteristics, payload)])


LIBRARIES = ["uuid.lib", "advapi32.lib", "OLDNAMES"]


@pytest.mark.parametrize(
    "text",
    [
        '  /DEFAULTLIB:"uuid.lib" /DEFAULTLIB:"advapi32.lib" /DEFAULTLIB:"OLDNAMES" ',
        "  /DEFAULTLIB:uuid.lib /DEFAULTLIB:advapi32.lib /DEFAULTLIB:OLDNAMES ",
        '  /DEFAULTLIB:uuid.lib /DEFAULTLIB:"advapi32.lib" /DEFAULTLIB:OLDNAMES ',
    ],
)
def test_defaultlibs_variants(text):
    assert list(DirectiveParser(text)) == [("DEFAULTLIB", lib) for lib in LIBRARIES]


def test_defaultlibs_no_trailing_whitespace():
    assert list(DirectiveParser("  /DEFAULTLIB:uuid.lib")) == [("DEFAULTLIB", "uuid.lib")]


def test_alternatenames_values():
    pairs = list(DirectiveParser("  /ALTERNATENAME:foo=bar /alternatename:foo=bar"))
    assert [value.split("=", 1) for _, value in pairs] == [["foo", "bar"], ["foo", "bar"]]
    assert [flag for flag, _ in pairs] == ["ALTERNATENAME", "alternatename"]


def test_dash_prefix_and_tabs():
    assert list(DirectiveParser("-EXPORT:foo\t/merge:.a=.b")) == [
        ("EXPORT", "foo"),
        ("merge", ".a=.b"),
    ]


def test_offset_tracks_consumed_bytes():
    parser = DirectiveParser("  /A:x /B:y", offset=3)
    assert parser.offset == 5
    assert next(parser) == ("A", "x")
    assert parser.offset == 10
    assert next(parser) == ("B", "y")
    assert parser.offset == 14


def test_empty_value_at_end():
    assert list(DirectiveParser("/DEFAULTLIB:")) == [("DEFAULTLIB", "")]


@pytest.mark.parametrize("text", ["DEFAULTLIB:x", "/:x", "/FLAG", "/FLAG: x"])
def test_invalid_directive_raises(text):
    with pytest.raises(DirectiveParseError):
        list(DirectiveParser(text))


def test_iteration_stops_after_error():
    parser = DirectiveParser("/A:x bad")
    assert next(parser) == ("A", "x")
    with pytest.raises(DirectiveParseError):
        next(parser)
    assert list(parser) == []


def test_parse_linker_directives_from_object():
    parser = parse_linker_directives(drectve_object(" /DEFAULTLIB:uuid.lib"))
    assert list(parser) == [("DEFAULTLIB", "uuid.lib")]


def test_bom_is_skipped():
    raw = b"\xef\xbb\xbf/DEFAULTLIB:kernel32"
    parser = parse_linker_directives(drectve_object("", raw=raw))
    assert parser.offset == 3
    assert list(parser) == [("DEFAULTLIB", "kernel32")]


def test_missing_section_returns_none():
    data = build_coff([(".text", 0x60000020, b"\xc3")])
    assert parse_linker_directives(data) is None
    assert parse_defaultlibs(data) is None


def test_section_without_lnk_info_returns_none():
    assert parse_linker_directives(drectve_object("/DEFAULTLIB:a", characteristics=0)) is None


def test_invalid_utf8_raises():
    with pytest.raises(DirectiveSectionError):
        parse_linker_directives(drectve_object("", raw=b"/DEFAULTLIB:\xff\xfe"))


def test_truncated_object_raises():
    with pytest.raises(DirectiveSectionError):
        parse_linker_directives(b"\x64\x86\x01")
    assert parse_defaultlibs(b"\x64\x86\x01") is None


def test_parse_defaultlibs_filters_flags():
    data = drectve_object('/DEFAULTLIB:"uuid.lib" /EXPORT:go /defaultlib:OLDNAMES')
    assert list(parse_defaultlibs(data)) == ["uuid.lib", "OLDNAMES"]


def test_parse_defaultlibs_normalized():
    data = drectve_object("/DEFAULTLIB:uuid.lib /DEFAULTLIB:ADVAPI32.LIB /DEFAULTLIB:OLDNAMES /DEFAULTLIB:a.b.lib")
    assert list(parse_defaultlibs_normalized(data)) == ["uuid", "ADVAPI32", "OLDNAMES", "a.b"]


def test_parse_defaultlibs_stops_at_error():
    data = drectve_object("/DEFAULTLIB:one garbage /DEFAULTLIB:two")
    assert list(parse_defaultlibs(data)) == ["one"]


def test_parse_alternatenames():
    data = drectve_object("/ALTERNATENAME:foo=bar /alternatename:baz=qux /ALTERNATENAME:noequals")
    assert list(parse_alternatenames(data)) == [("foo", "bar"), ("baz", "qux")]