"""
Tests for the Rust declaration parser (Rust source -> raw declarations).

Covers:
    - Tokenization (comments, strings, chars vs lifetimes)
    - Delimiter balancing and syntax errors with positions
    - Marker detection (derive, qualified derive, cfg_attr)
    - Named, tuple and unit structs; enums with all variant shapes
    - Field directives (alias, skip)
    - Skipping of unmarked items and searching inline modules
"""

import pytest
from borsh_glue.errors import SourceSyntaxError
from borsh_glue.rust_parser import (
    DeclarationKind,
    Group,
    is_marked,
    parse_source,
    render_tokens,
    tokenize,
)


class TestTokenizer:
    """Token streams and delimiter trees."""

    def test_groups_are_nested(self):
        nodes = tokenize("struct A { b: [u8; 2] }")
        assert [n.text for n in nodes[:2]] == ["struct", "A"]
        body = nodes[2]
        assert isinstance(body, Group) and body.delimiter == "{"
        assert isinstance(body.tokens[2], Group) and body.tokens[2].delimiter == "["

    def test_comments_are_dropped(self):
        nodes = tokenize("a // line ( comment\n/* block /* nested */ ) */ b /// doc\n")
        assert [n.text for n in nodes] == ["a", "b"]

    def test_delimiters_inside_strings_are_ignored(self):
        nodes = tokenize('const S: &str = "( [ {"; const R: &str = r#"}"#;')
        assert not any(isinstance(n, Group) for n in nodes)

    def test_char_literals_and_lifetimes(self):
        nodes = tokenize("fn f<'a>(x: &'a str) -> char { '}' }")
        generics_and_args = [n for n in nodes if not isinstance(n, Group)]
        assert "'a" in [n.text for n in generics_and_args]
        body = nodes[-1]
        assert body.tokens[0].kind == "literal"
        assert body.tokens[0].text == "'}'"

    def test_escaped_char_literal(self):
        nodes = tokenize(r"const Q: char = '\'';")
        assert nodes[-2].text == r"'\''"

    def test_raw_identifier(self):
        nodes = tokenize("r#type")
        assert nodes[0].kind == "ident"
        assert nodes[0].text == "r#type"

    def test_render_tokens(self):
        nodes = tokenize("[Option<Pubkey>; 3]")
        assert render_tokens(nodes) == "[ Option < Pubkey > ; 3 ]"

    def test_positions(self):
        nodes = tokenize("a\n  b")
        assert (nodes[1].line, nodes[1].column) == (2, 3)


class TestSyntaxErrors:
    """Unparseable files fail with a position."""

    @pytest.mark.parametrize("source", [
        "struct A { a: u8",
        "struct A { a: u8 ]",
        "fn f() { } }",
        'const S: &str = "unterminated;',
        "/* never closed",
        "const C: char = '",
        "struct A { a: u8 } `",
    ])
    def test_rejected(self, source):
        with pytest.raises(SourceSyntaxError):
            parse_source(source, path="bad.rs")

    def test_error_carries_path_and_line(self):
        with pytest.raises(SourceSyntaxError) as exc_info:
            parse_source("struct A {\n    a: u8,\n]\n", path="src/bad.rs")
        error = exc_info.value
        assert error.path == "src/bad.rs"
        assert error.line == 3
        assert "src/bad.rs" in str(error)

    def test_malformed_marked_struct(self):
        source = "#[derive(BorshSchema)]\nstruct A { a u8 }"
        with pytest.raises(SourceSyntaxError):
            parse_source(source)

    def test_missing_field_type(self):
        with pytest.raises(SourceSyntaxError):
            parse_source("#[derive(BorshSchema)]\nstruct A { a: }")

    def test_dangling_attribute(self):
        with pytest.raises(SourceSyntaxError):
            parse_source("#[derive(BorshSchema)]")

    def test_truncated_item(self):
        with pytest.raises(SourceSyntaxError):
            parse_source("pub type A = u8")


class TestMarkerDetection:
    """Only declarations deriving the marker are extracted."""

    def _attributes(self, source):
        return [n for n in tokenize(source) if isinstance(n, Group)]

    def test_plain_derive(self):
        assert is_marked(self._attributes("#[derive(Debug, BorshSchema)]"))

    def test_qualified_derive(self):
        assert is_marked(self._attributes("#[derive(agsol_borsh_schema::BorshSchema)]"))

    def test_cfg_attr_derive(self):
        assert is_marked(self._attributes("#[cfg_attr(test, derive(BorshSchema))]"))

    def test_other_derives(self):
        assert not is_marked(self._attributes("#[derive(BorshSerialize, Clone)]"))

    def test_marker_outside_derive(self):
        assert not is_marked(self._attributes("#[doc = \"BorshSchema\"] #[BorshSchema]"))

    def test_custom_marker(self):
        source = "#[derive(Layout)]\nstruct A { a: u8 }\n#[derive(BorshSchema)]\nstruct B { b: u8 }"
        declarations = parse_source(source, marker="Layout")
        assert [d.name for d in declarations] == ["A"]

    def test_unmarked_items_are_skipped(self):
        source = """
            use std::collections::{BTreeMap, HashMap};
            const LIMIT: [u8; 2] = [1, 2];
            static DEFAULT: Config = Config { a: 1 };
            struct Plain { a: u8 }
            impl Plain { fn new() -> Self { Self { a: 0 } } }
            macro_rules! noop { () => {}; }
            noop!();
            #[derive(BorshSchema)]
            struct Wanted { a: u8 }
        """
        declarations = parse_source(source)
        assert [d.name for d in declarations] == ["Wanted"]

    def test_file_without_declarations(self):
        assert parse_source("fn main() {}\n") == []


class TestStructs:
    """Struct declarations."""

    def test_named_struct(self):
        source = """
            #[derive(BorshSchema, BorshSerialize)]
            pub struct TestStruct {
                pub field_a: u64,
                pub(crate) field_b: BTreeMap<u8, Bar>,
                /// documented
                field_c: [Option<Pubkey>; 3],
            }
        """
        [decl] = parse_source(source, path="src/lib.rs")
        assert decl.kind == DeclarationKind.STRUCT
        assert decl.name == "TestStruct"
        assert decl.path == "src/lib.rs"
        assert decl.line == 3
        assert [(f.name, f.type_text) for f in decl.fields] == [
            ("field_a", "u64"),
            ("field_b", "BTreeMap < u8 , Bar >"),
            ("field_c", "[ Option < Pubkey > ; 3 ]"),
        ]

    def test_tuple_struct(self):
        source = "#[derive(BorshSchema)]\npub struct TupleStruct(u8, pub i32, pub OtherState);"
        [decl] = parse_source(source)
        assert [(f.name, f.type_text) for f in decl.fields] == [
            (None, "u8"), (None, "i32"), (None, "OtherState"),
        ]

    def test_unit_struct(self):
        [decl] = parse_source("#[derive(BorshSchema)]\nstruct Empty;")
        assert decl.fields == ()

    def test_generics_and_where_clause_are_skipped(self):
        source = """
            #[derive(BorshSchema)]
            struct Wrapper<T: Into<u64>, F: Fn() -> u8> where T: Clone {
                value: u64,
            }
        """
        [decl] = parse_source(source)
        assert [f.name for f in decl.fields] == ["value"]

    def test_raw_identifier_field(self):
        [decl] = parse_source("#[derive(BorshSchema)]\nstruct A { r#type: u8 }")
        assert decl.fields[0].name == "type"

    def test_directives(self):
        source = """
            #[derive(BorshSchema)]
            struct TestStruct {
                #[alias(Option<Vec<OtherState>>)]
                field_c: StatePool,
                #[schema_skip]
                #[borsh_skip]
                skipped_field: Option<u32>,
                #[serde(rename = "x")]
                plain: u8,
            }
        """
        [decl] = parse_source(source)
        alias_field, skipped, plain = decl.fields
        assert alias_field.alias == "Option < Vec < OtherState > >"
        assert not alias_field.skip
        assert skipped.skip
        assert plain.alias is None and not plain.skip

    def test_tuple_field_directives(self):
        source = "#[derive(BorshSchema)]\nstruct T(#[alias(u64)] Amount, #[skip] u8);"
        [decl] = parse_source(source)
        assert decl.fields[0].alias == "u64"
        assert decl.fields[1].skip

    def test_malformed_alias(self):
        with pytest.raises(SourceSyntaxError):
            parse_source("#[derive(BorshSchema)]\nstruct A { #[alias] a: u8 }")

    def test_declarations_in_inline_module(self):
        source = """
            #[derive(BorshSchema)]
            struct Outer { a: u8 }
            pub mod inner {
                #[derive(BorshSchema)]
                pub struct Inner { b: u8 }
            }
            mod external;
        """
        assert [d.name for d in parse_source(source)] == ["Outer", "Inner"]

    def test_source_order(self):
        source = "\n".join(
            f"#[derive(BorshSchema)]\nstruct {name} {{ a: u8 }}" for name in ("Foo", "Bar", "Baz")
        )
        assert [d.name for d in parse_source(source)] == ["Foo", "Bar", "Baz"]


class TestEnums:
    """Enum declarations."""

    def test_all_variant_shapes(self):
        source = """
            #[derive(BorshSchema)]
            pub enum TestEnum {
                VariantA,
                #[doc = "tuple"]
                VariantC(u64, #[alias(u64)] Amount),
                VariantG {
                    hello: Vec<u8>,
                    zello: bool,
                },
            }
        """
        [decl] = parse_source(source)
        assert decl.kind == DeclarationKind.ENUM
        assert [v.name for v in decl.variants] == ["VariantA", "VariantC", "VariantG"]
        assert decl.variants[0].fields == ()
        assert [f.type_text for f in decl.variants[1].fields] == ["u64", "Amount"]
        assert decl.variants[1].fields[1].alias == "u64"
        assert [f.name for f in decl.variants[2].fields] == ["hello", "zello"]

    def test_explicit_discriminants(self):
        source = "#[derive(BorshSchema)]\nenum E { A = 1 << 2, B = 3, }"
        [decl] = parse_source(source)
        assert [v.name for v in decl.variants] == ["A", "B"]

    def test_garbage_after_variant(self):
        with pytest.raises(SourceSyntaxError):
            parse_source("#[derive(BorshSchema)]\nenum E { A B }")

    def test_enum_without_body(self):
        with pytest.raises(SourceSyntaxError):
            parse_source("#[derive(BorshSchema)]\nenum E;")
