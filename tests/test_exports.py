import pytest

from moduledefs.errors import ParseFailure
from moduledefs.exports import (
    DefinitionAttribute,
    DefinitionOrdinal,
    ExportsDefinition,
    ExternalAlias,
    InternalName,
    parse_exports_definition,
    parse_exports_statement,
    parse_exports_statement_first,
)


def test_single_export():
    definitions, _ = parse_exports_statement("EXPORTS foo", 0)
    assert definitions == [ExportsDefinition(entryname="foo")]


def test_multiple_exports():
    data = "EXPORTS\n            foo\n            bar"
    definitions, _ = parse_exports_statement(data, 0)
    assert definitions == [
        ExportsDefinition(entryname="foo"),
        ExportsDefinition(entryname="bar"),
    ]


def test_definition_internal_alias():
    definition, _ = parse_exports_definition("func2=func1", 0)
    assert definition == ExportsDefinition(
        entryname="func2", entryname_alias=InternalName("func1")
    )
    assert definition.internal_name() == "func1"
    assert definition.other_module() is None


def test_definition_external_alias():
    definition, _ = parse_exports_definition("func2=other_module.func1", 0)
    assert definition == ExportsDefinition(
        entryname="func2",
        entryname_alias=ExternalAlias("other_module", "func1"),
    )
    assert definition.other_module() == ("other_module", "func1")
    assert definition.internal_name() is None


def test_definition_alias_ordinal():
    definition, _ = parse_exports_definition("func2=other_module.#42", 0)
    assert definition == ExportsDefinition(
        entryname="func2",
        entryname_alias=ExternalAlias("other_module", 42),
    )


def test_alias_whitespace():
    data = (
        "EXPORTS\n"
        "            foo= bar\n"
        "            foo =bar\n"
        "            foo = bar\n"
        "            foo  =  bar\n"
        "            foo = module.bar\n"
        "            foo = module.#1\n"
        "            "
    )
    definitions, _ = parse_exports_statement(data, 0)
    internal = ExportsDefinition(entryname="foo", entryname_alias=InternalName("bar"))
    assert definitions == [
        internal,
        internal,
        internal,
        internal,
        ExportsDefinition(entryname="foo", entryname_alias=ExternalAlias("module", "bar")),
        ExportsDefinition(entryname="foo", entryname_alias=ExternalAlias("module", 1)),
    ]


def test_definition_alias_data():
    definition, _ = parse_exports_definition("foo = bar      DATA", 0)
    assert definition == ExportsDefinition(
        entryname="foo",
        entryname_alias=InternalName("bar"),
        attribute=DefinitionAttribute.DATA,
    )
    assert definition.has_data_attribute()
    assert not definition.has_private_attribute()


def test_definition_ordinal():
    definition, _ = parse_exports_definition("foo @1", 0)
    assert definition == ExportsDefinition(
        entryname="foo", ordinal=DefinitionOrdinal(value=1, noname=False)
    )
    assert definition.ordinal_value() == 1
    assert definition.ordinal_noname() is False


def test_data_export():
    definitions, _ = parse_exports_statement("EXPORTS exported_global DATA", 0)
    assert definitions == [
        ExportsDefinition(
            entryname="exported_global", attribute=DefinitionAttribute.DATA
        )
    ]


def test_docs_example():
    data = (
        "EXPORTS\n"
        "  DllCanUnloadNow      @1          PRIVATE\n"
        "  DllWindowName = WindowName       DATA\n"
        "  DllGetClassObject    @4 NONAME   PRIVATE\n"
        "  DllRegisterServer    @7\n"
        "  DllUnregisterServer\n"
        "        "
    )
    definitions, _ = parse_exports_statement(data, 0)
    assert definitions == [
        ExportsDefinition(
            entryname="DllCanUnloadNow",
            ordinal=DefinitionOrdinal(1, False),
            attribute=DefinitionAttribute.PRIVATE,
        ),
        ExportsDefinition(
            entryname="DllWindowName",
            entryname_alias=InternalName("WindowName"),
            attribute=DefinitionAttribute.DATA,
        ),
        ExportsDefinition(
            entryname="DllGetClassObject",
            ordinal=DefinitionOrdinal(4, True),
            attribute=DefinitionAttribute.PRIVATE,
        ),
        ExportsDefinition(
            entryname="DllRegisterServer", ordinal=DefinitionOrdinal(7, False)
        ),
        ExportsDefinition(entryname="DllUnregisterServer"),
    ]
    assert definitions[2].ordinal_noname() is True
    assert definitions[0].has_private_attribute() is True


def test_statement_consumes_whole_input():
    data = "EXPORTS\n  foo\n  bar\n"
    _, pos = parse_exports_statement(data, 0)
    assert pos == len(data)


def test_comments_between_definitions():
    data = "EXPORTS\n  foo\n; a comment\n  bar\n"
    definitions, _ = parse_exports_statement(data, 0)
    assert [d.entryname for d in definitions] == ["foo", "bar"]


def test_hex_ordinal():
    definition, _ = parse_exports_definition("foo @0x10", 0)
    assert definition.ordinal_value() == 16


def test_ordinal_overflow_is_fatal():
    with pytest.raises(ParseFailure) as info:
        parse_exports_definition("foo @70000", 0)
    assert info.value.fatal is True


def test_ordinal_space_after_at_is_fatal():
    with pytest.raises(ParseFailure) as info:
        parse_exports_definition("foo @ 1", 0)
    assert info.value.fatal is True


def test_missing_alias_is_fatal():
    with pytest.raises(ParseFailure) as info:
        parse_exports_definition("foo=", 0)
    assert info.value.fatal is True


def test_keyword_entryname_rejected():
    with pytest.raises(ParseFailure) as info:
        parse_exports_definition("DATA", 0)
    assert info.value.fatal is False


def test_quoted_entryname():
    definition, _ = parse_exports_definition('"DATA" PRIVATE', 0)
    assert definition.entryname == "DATA"
    assert definition.attribute is DefinitionAttribute.PRIVATE


def test_statement_first():
    definition, pos = parse_exports_statement_first("EXPORTS foo\n  bar", 0)
    assert definition == ExportsDefinition(entryname="foo")
    assert pos == len("EXPORTS foo\n  ")


def test_statement_first_requires_space():
    with pytest.raises(ParseFailure) as info:
        parse_exports_statement_first("EXPORTSfoo", 0)
    assert info.value.fatal is True


def test_statement_first_wrong_keyword():
    with pytest.raises(ParseFailure) as info:
        parse_exports_statement_first("SECTIONS foo", 0)
    assert info.value.fatal is False


def test_default_ordinal():
    assert DefinitionOrdinal() == DefinitionOrdinal(value=1, noname=False)


def test_no_ordinal_accessors():
    definition = ExportsDefinition(entryname="foo")
    assert definition.ordinal_value() is None
    assert definition.ordinal_noname() is False
    assert definition.has_data_attribute() is False