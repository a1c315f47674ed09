"""
Tests for the Field and Layout model.

These tests verify:
    - Mixed-case field naming
    - Positional field naming (skip does not shift positions)
    - Directive handling during field construction
    - Struct and enum layout construction
    - Error context when a field cannot be resolved
"""

import pytest
from borsh_glue.errors import FieldResolutionError, SourceLocation
from borsh_glue.layout import (
    Layout,
    LayoutField,
    LayoutKind,
    to_mixed_case,
)
from borsh_glue.rust_parser import (
    DeclarationKind,
    RawDeclaration,
    RawField,
    RawVariant,
)
from borsh_glue.types import (
    Custom,
    FixedArray,
    FixedBytes,
    Option,
    Skip,
    Vec,
    I32,
    STRING,
    U8,
    U64,
)


class TestMixedCase:
    """Lexical name conversion."""

    @pytest.mark.parametrize("source, expected", [
        ("field_a", "fieldA"),
        ("optional_accounts", "optionalAccounts"),
        ("random_field", "randomField"),
        ("amount", "amount"),
        ("TestEnumVariantA", "testEnumVariantA"),
        ("HTTPServer", "httpServer"),
        ("map0", "map0"),
        ("map_0", "map0"),
        ("u8_value", "u8Value"),
        ("_private_field", "privateField"),
        ("alreadyCamel", "alreadyCamel"),
        ("SCREAMING_CASE", "screamingCase"),
    ])
    def test_conversion(self, source, expected):
        assert to_mixed_case(source) == expected


class TestLayoutField:
    """Field construction from raw declarations."""

    def test_simple_field_construction(self):
        field = LayoutField.from_declaration(RawField(name="random_field", type_text="u8"), 0)
        assert field.name == "randomField"
        assert field.ty == U8

    def test_complex_field_construction(self):
        field = LayoutField.from_declaration(
            RawField(name="optional_accounts", type_text="[Option<Pubkey>; 3]"), 0
        )
        assert field.name == "optionalAccounts"
        assert field.ty == FixedArray(Option(FixedBytes(32)), 3)

    def test_positional_field_name(self):
        field = LayoutField.from_declaration(RawField(name=None, type_text="i32"), 2)
        assert field.name == "unnamed_2"
        assert field.ty == I32

    def test_alias_field(self):
        field = LayoutField.from_declaration(
            RawField(name="amount", type_text="Amount", alias="u64"), 0
        )
        assert field.ty == U64

    def test_skip_field(self):
        field = LayoutField.from_declaration(
            RawField(name="skipped_field", type_text="Option<u32>", skip=True), 0
        )
        assert field.ty == Skip()
        assert field.should_skip

    def test_field_immutable(self):
        field = LayoutField(name="a", ty=U8)
        with pytest.raises(AttributeError):
            field.name = "b"


class TestStructLayout:
    """Struct layouts keep declaration order."""

    def test_fields_in_declaration_order(self):
        decl = RawDeclaration(
            name="TestStruct",
            kind=DeclarationKind.STRUCT,
            fields=(
                RawField("field_a", "u64"),
                RawField("field_b", "u8"),
                RawField("field_c", "StatePool", alias="Option<Vec<OtherState>>"),
                RawField("skipped_field", "Option<u32>", skip=True),
            ),
            path="src/state.rs",
            line=10,
        )
        layout = Layout.from_struct(decl)

        assert layout.name == "TestStruct"
        assert layout.kind == LayoutKind.STRUCT
        assert [f.name for f in layout.fields] == ["fieldA", "fieldB", "fieldC", "skippedField"]
        assert layout.get_field("fieldC").ty == Option(Vec(Custom("OtherState")))
        assert [f.name for f in layout.emitted_fields] == ["fieldA", "fieldB", "fieldC"]
        assert layout.source == SourceLocation("src/state.rs", 10)

    def test_skip_does_not_shift_positions(self):
        decl = RawDeclaration(
            name="Tuple",
            kind=DeclarationKind.STRUCT,
            fields=(
                RawField(None, "u8"),
                RawField(None, "Secret", skip=True),
                RawField(None, "String"),
            ),
        )
        layout = Layout.from_struct(decl)
        assert [f.name for f in layout.emitted_fields] == ["unnamed_0", "unnamed_2"]
        assert layout.get_field("unnamed_2").ty == STRING

    def test_unit_struct_has_no_fields(self):
        layout = Layout.from_struct(RawDeclaration(name="Marker", kind=DeclarationKind.STRUCT))
        assert layout.fields == ()

    def test_fields_list_becomes_tuple(self):
        layout = Layout(name="A", fields=[LayoutField("x", U8)])
        assert isinstance(layout.fields, tuple)

    def test_source_not_part_of_equality(self):
        a = Layout(name="A", fields=(LayoutField("x", U8),), source=SourceLocation("a.rs", 1))
        b = Layout(name="A", fields=(LayoutField("x", U8),), source=SourceLocation("b.rs", 9))
        assert a == b

    def test_get_missing_field(self):
        assert Layout(name="A").get_field("nope") is None


class TestResolutionErrors:
    """Resolution failures carry file, declaration, field and expression."""

    def test_error_context(self):
        decl = RawDeclaration(
            name="Broken",
            kind=DeclarationKind.STRUCT,
            fields=(RawField("ok", "u8"), RawField("bad_field", "Option<u8")),
            path="src/broken.rs",
            line=3,
        )
        with pytest.raises(FieldResolutionError) as exc_info:
            Layout.from_struct(decl)

        error = exc_info.value
        assert error.path == "src/broken.rs"
        assert error.declaration == "Broken"
        assert error.field == "bad_field"
        assert error.expression == "Option<u8"
        assert "src/broken.rs" in str(error)
        assert "Broken" in str(error)
        assert "bad_field" in str(error)

    def test_positional_error_uses_synthetic_name(self):
        decl = RawDeclaration(
            name="T",
            kind=DeclarationKind.STRUCT,
            fields=(RawField(None, "u8"), RawField(None, "&str")),
        )
        with pytest.raises(FieldResolutionError) as exc_info:
            Layout.from_struct(decl)
        assert exc_info.value.field == "unnamed_1"


class TestEnumLayout:
    """Enums become an enum layout followed by one struct per variant."""

    @pytest.fixture
    def layouts(self):
        decl = RawDeclaration(
            name="TestEnum",
            kind=DeclarationKind.ENUM,
            variants=(
                RawVariant("VariantA"),
                RawVariant("VariantC", (RawField(None, "u64"),)),
                RawVariant("VariantG", (
                    RawField("hello", "Vec<u8>"),
                    RawField("secret", "u8", skip=True),
                )),
            ),
            path="src/instruction.rs",
            line=4,
        )
        return Layout.from_declaration(decl)

    def test_enum_layout_first(self, layouts):
        assert [layout.name for layout in layouts] == [
            "TestEnum", "TestEnumVariantA", "TestEnumVariantC", "TestEnumVariantG",
        ]
        assert layouts[0].kind == LayoutKind.ENUM
        assert all(layout.kind == LayoutKind.STRUCT for layout in layouts[1:])

    def test_variant_entries_reference_variant_structs(self, layouts):
        enum_layout = layouts[0]
        assert [(f.name, f.ty) for f in enum_layout.fields] == [
            ("variantA", Custom("TestEnumVariantA")),
            ("variantC", Custom("TestEnumVariantC")),
            ("variantG", Custom("TestEnumVariantG")),
        ]

    def test_unit_variant_is_empty_struct(self, layouts):
        assert layouts[1].fields == ()

    def test_tuple_variant_payload(self, layouts):
        assert [(f.name, f.ty) for f in layouts[2].fields] == [("unnamed_0", U64)]

    def test_struct_variant_payload_with_skip(self, layouts):
        variant = layouts[3]
        assert [f.name for f in variant.emitted_fields] == ["hello"]
        assert variant.get_field("secret").should_skip

    def test_variant_layouts_share_source(self, layouts):
        assert all(layout.source == SourceLocation("src/instruction.rs", 4) for layout in layouts)

    def test_variant_resolution_error_names_variant_struct(self):
        decl = RawDeclaration(
            name="E",
            kind=DeclarationKind.ENUM,
            variants=(RawVariant("V", (RawField("x", "Vec<"),)),),
        )
        with pytest.raises(FieldResolutionError) as exc_info:
            Layout.from_declaration(decl)
        assert exc_info.value.declaration == "EV"
