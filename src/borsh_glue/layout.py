"""
Core Layout Model Objects

Defines the intermediate representation between Rust declarations and
the generated TypeScript:

    - LayoutField (one serialized field: name + canonical type)
    - Layout (an ordered list of fields under a name and a kind)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about TypeScript or borsh-js notation
        - Are immutable
        - Are fully serializable
        - Preserve declaration order exactly (it IS the wire order)
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from borsh_glue.errors import FieldResolutionError, SourceLocation, TypeSyntaxError
from borsh_glue.rust_parser import DeclarationKind, RawDeclaration, RawField
from borsh_glue.type_parser import resolve_field_type
from borsh_glue.types import BorshType, Custom, Skip


_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z]+[0-9]*|[0-9]+")


def to_mixed_case(identifier: str) -> str:
    """
    Rewrite an identifier in lower camel case.

    Examples:
        field_a           -> fieldA
        TestEnumVariantA  -> testEnumVariantA
        HTTPServer        -> httpServer
        map0              -> map0

    Purely lexical; never consults the type resolver.
    """
    words = []
    for chunk in identifier.split("_"):
        words.extend(_WORD_RE.findall(chunk))
    if not words:
        return identifier
    head = words[0].lower()
    tail = "".join(word[0].upper() + word[1:].lower() for word in words[1:])
    return head + tail


def positional_name(index: int) -> str:
    """Synthetic name of the index-th unnamed (tuple) field."""
    return f"unnamed_{index}"


class LayoutKind(Enum):
    """Whether a layout mirrors a Rust `struct` or an `enum`."""

    STRUCT = "Struct"
    ENUM = "Enum"


@dataclass(frozen=True)
class LayoutField:
    """
    One field of a TypeScript class and a borsh schema entry.

    Properties:
        name:
            Emitted field name, already in mixed case
            (or unnamed_<index> for positional fields)

        ty:
            Canonical type; Skip means "omit from both artifacts"
    """

    name: str
    ty: BorshType

    @property
    def should_skip(self) -> bool:
        return isinstance(self.ty, Skip)

    @classmethod
    def from_declaration(cls, raw: RawField, index: int) -> "LayoutField":
        """
        Build a field from its raw declaration.

        Args:
            raw: Field as extracted by the declaration parser
            index: Declaration position (counts skipped fields too)

        Raises:
            TypeSyntaxError: If the effective type expression is malformed
        """
        if raw.name is not None:
            name = to_mixed_case(raw.name)
        else:
            name = positional_name(index)
        ty = resolve_field_type(raw.type_text, alias=raw.alias, skip=raw.skip)
        return cls(name=name, ty=ty)


@dataclass(frozen=True)
class Layout:
    """
    The layout of one Rust data structure, ready for emission.

    Properties:
        name:
            Emitted class / schema entry name

        kind:
            LayoutKind.STRUCT or LayoutKind.ENUM

        fields:
            Ordered fields. For an enum, one entry per variant whose type
            is Custom(<EnumName><VariantName>)

        source:
            Where the declaration was found. Diagnostics only: it takes
            no part in equality and is never emitted.

    INVARIANTS:
        - Field order is the serialization order
        - Skip fields are kept here and dropped by the backends
    """

    name: str
    kind: LayoutKind = LayoutKind.STRUCT
    fields: Tuple[LayoutField, ...] = ()
    source: Optional[SourceLocation] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))

    @property
    def emitted_fields(self) -> List[LayoutField]:
        """Fields that appear in the generated artifacts."""
        return [f for f in self.fields if not f.should_skip]

    def get_field(self, name: str) -> Optional[LayoutField]:
        """
        Retrieve a field by its emitted name.

        Returns:
            LayoutField or None if not found
        """
        for layout_field in self.fields:
            if layout_field.name == name:
                return layout_field
        return None

    @classmethod
    def from_fields(cls, name: str, raw_fields: List[RawField],
                    source: Optional[SourceLocation] = None) -> "Layout":
        """
        Build a struct layout from raw fields in declaration order.

        Raises:
            FieldResolutionError: If a field's type cannot be resolved
        """
        fields = []
        for index, raw in enumerate(raw_fields):
            try:
                fields.append(LayoutField.from_declaration(raw, index))
            except TypeSyntaxError as e:
                field_name = raw.name if raw.name is not None else positional_name(index)
                raise FieldResolutionError(
                    path=source.path if source else "<source>",
                    declaration=name,
                    field=field_name,
                    expression=e.expression,
                    reason=e.reason,
                ) from e
        return cls(name=name, kind=LayoutKind.STRUCT, fields=tuple(fields), source=source)

    @classmethod
    def from_struct(cls, decl: RawDeclaration) -> "Layout":
        """Build the layout of a `struct` declaration."""
        return cls.from_fields(decl.name, decl.fields, source=decl.location)

    @classmethod
    def from_enum(cls, decl: RawDeclaration) -> List["Layout"]:
        """
        Build the layouts of an `enum` declaration.

        Returns the enum layout first, then one struct layout per variant
        in variant order. On the wire an enum value is its variant index
        (one byte) followed by the variant payload encoded as a struct,
        so variant `B` of enum `A` becomes the struct layout `AB`:

            enum A { X, B(u64) }

        Becomes:
            Layout("A", ENUM, [x: Custom("AX"), b: Custom("AB")])
            Layout("AX", STRUCT, [])
            Layout("AB", STRUCT, [unnamed_0: U64])
        """
        variant_fields = []
        variant_layouts = []
        for variant in decl.variants:
            variant_name = decl.name + variant.name
            variant_fields.append(
                LayoutField(name=to_mixed_case(variant.name), ty=Custom(variant_name))
            )
            variant_layouts.append(
                cls.from_fields(variant_name, variant.fields, source=decl.location)
            )

        enum_layout = cls(
            name=decl.name,
            kind=LayoutKind.ENUM,
            fields=tuple(variant_fields),
            source=decl.location,
        )
        return [enum_layout] + variant_layouts

    @classmethod
    def from_declaration(cls, decl: RawDeclaration) -> List["Layout"]:
        """All layouts produced by one declaration, in emission order."""
        if decl.kind == DeclarationKind.ENUM:
            return cls.from_enum(decl)
        return [cls.from_struct(decl)]


__all__ = [
    "Layout",
    "LayoutField",
    "LayoutKind",
    "to_mixed_case",
    "positional_name",
]
