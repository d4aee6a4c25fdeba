# moduledefs

A dependency-free parser for Windows module-definition (`.def`) files, plus a
reader for the linker directives (such as `/DEFAULTLIB` and `/ALTERNATENAME`)
that compilers store in the `.drectve` section of COFF object files.

## Installing

From a checkout of the project:

```
pip install .
```

## Module-definition files

```python
from moduledefs.modulefile import ModuleFile

text = """
; exports of the sample library
LIBRARY mylibrary
EXPORTS
   MyLibraryCreate
   MyLibraryGlobalData                    DATA
   MyLibraryInternal=MyLibraryExternal
   MyLibraryForward=forwarded_dll.func1
   MyLibraryOrdinalThree                  @3
   MyLibraryPrivate                       PRIVATE
"""

module = ModuleFile.parse(text)
print(module.module_name())     # "mylibrary"
print(module.library_name())    # "mylibrary"
print(module.base_address())    # None

for export in module.exports():
    print(export.entryname, export.ordinal_value(), export.has_data_attribute())
```

`ModuleFile.parse` reads the header, which must be a `LIBRARY` or `NAME`
statement; the rest of the file is parsed lazily. `ModuleFile.statements()`
yields every statement after the header: `ExportsDefinition`,
`SectionsDefinition`, `HeapsizeStatement`, `StacksizeStatement`,
`StubStatement` and `VersionStatement` objects. `ModuleFile.exports()` yields
only the export definitions.

An `ExportsDefinition` has the fields `entryname`, `entryname_alias`
(an `InternalName` or an `ExternalAlias`), `ordinal` (a `DefinitionOrdinal`)
and `attribute` (a `DefinitionAttribute`), and the helpers `internal_name()`,
`other_module()`, `ordinal_value()`, `ordinal_noname()`,
`has_private_attribute()` and `has_data_attribute()`.

A syntax error is raised as `moduledefs.errors.ParseError`. It carries
`line`, `column`, `fragment` (the offending line) and `kind`, and its
message shows the line with a caret under the failing column.

The rules follow the documented format: keywords are case sensitive,
`LIBRARY` or `NAME` must come first, `EXPORTS` and `SECTIONS` (or `SEGMENTS`)
may repeat, comments start with `;` at the beginning of a line, and numbers
are decimal or `0x`-prefixed hexadecimal with optional `_` separators.

### Lower-level parsers

The modules `moduledefs.scanner`, `moduledefs.statements` and
`moduledefs.exports` expose the individual parsers (for example
`parse_library_statement`, `parse_heapsize_statement`,
`parse_exports_definition`). Each takes the whole text and a start offset and
returns the parsed value with the offset just past it, raising
`moduledefs.errors.ParseFailure` when the input does not match.

## Linker directives

`DirectiveParser` iterates over the `(flag, value)` pairs of directive text:

```python
from moduledefs.drectve import DirectiveParser

for flag, value in DirectiveParser('/DEFAULTLIB:"uuid.lib" /ALTERNATENAME:foo=bar'):
    print(flag, value)
```

Values may be quoted or unquoted. A malformed directive raises
`DirectiveParseError` and ends the iteration.

`parse_linker_directives` takes the bytes of a COFF object file, finds its
`.drectve` section and returns a `DirectiveParser` over it (a leading UTF-8
byte-order mark is skipped). It returns `None` if there is no such section or
the section lacks the `IMAGE_SCN_LNK_INFO` flag, and raises
`DirectiveSectionError` for a malformed object or non-UTF-8 section data.

Built on it, `parse_defaultlibs`, `parse_defaultlibs_normalized` (which drops
a trailing `.lib`) and `parse_alternatenames` (which yields
`(symbol, alias)` pairs) also take object-file bytes; they return `None` when
no directives can be read and stop quietly at the first malformed directive.

## What it does not do

This is a parsing library only. It has no command-line tool, does not write
`.def` files, and does not build import libraries or link object files.