"""
borsh-js schema table generator.

Renders the SCHEMA map consumed by borsh-js, one entry per layout, in
the same order as the class module:

    export const SCHEMA = new Map<any, any>([
        [
            TestStruct,
            {
                kind: 'struct',
                fields: [
                    ['fieldA', 'u64'],
                    ['fieldC', { kind: 'option', type: [OtherState] }],
                ],
            },
        ],
    ]);

IMPORTANT:
    Custom references are emitted as BARE identifiers (OtherState), never
    as quoted strings. borsh-js treats a string as a primitive type tag;
    only the class reference lets it recurse into another schema entry.
"""

from typing import List, Optional

from borsh_glue.backends.typescript import GENERATED_NOTICE, INDENT
from borsh_glue.config import GlueConfig
from borsh_glue.layout import Layout, LayoutKind
from borsh_glue.types import (
    BorshType,
    Scalar,
    ScalarKind,
    FixedBytes,
    Option,
    Vec,
    FixedArray,
    Map,
    Custom,
)


def scalar_tag(kind: ScalarKind) -> str:
    """
    borsh-js type tag of a scalar.

    The runtime only knows unsigned integer tags: bool travels as 'u8'
    and signed integers use the unsigned tag of the same width.
    """
    if kind == ScalarKind.STRING:
        return "string"
    if kind == ScalarKind.BOOL:
        return "u8"
    return f"u{kind.bits}"


def type_to_schema(ty: BorshType) -> str:
    """
    borsh-js schema notation of a canonical type.

    Raises:
        TypeError: For Skip (never rendered) or unknown types
    """
    if isinstance(ty, Scalar):
        return f"'{scalar_tag(ty.kind)}'"

    if isinstance(ty, FixedBytes):
        return f"[{ty.length}]"

    if isinstance(ty, Option):
        return f"{{ kind: 'option', type: {type_to_schema(ty.inner)} }}"

    if isinstance(ty, Vec):
        return f"[{type_to_schema(ty.inner)}]"

    if isinstance(ty, FixedArray):
        return f"[{type_to_schema(ty.inner)}, {ty.length}]"

    if isinstance(ty, Map):
        return (
            f"{{ kind: 'map', key: {type_to_schema(ty.key)}, "
            f"value: {type_to_schema(ty.value)} }}"
        )

    if isinstance(ty, Custom):
        return ty.name

    raise TypeError(f"Unsupported type for a schema entry: {ty!r}")


def layout_to_schema_entry(layout: Layout) -> str:
    """Render one `[Class, { kind: ..., ... }]` entry of the SCHEMA map."""
    pad = INDENT * 2
    lines = [f"{INDENT}[", f"{pad}{layout.name},", f"{pad}{{"]

    if layout.kind == LayoutKind.ENUM:
        lines.append(f"{pad}{INDENT}kind: 'enum',")
        lines.append(f"{pad}{INDENT}field: 'enum',")
        list_key = "values"
    else:
        lines.append(f"{pad}{INDENT}kind: 'struct',")
        list_key = "fields"

    entries = layout.emitted_fields
    if not entries:
        lines.append(f"{pad}{INDENT}{list_key}: [],")
    else:
        lines.append(f"{pad}{INDENT}{list_key}: [")
        for layout_field in entries:
            lines.append(
                f"{pad}{INDENT * 2}['{layout_field.name}', {type_to_schema(layout_field.ty)}],"
            )
        lines.append(f"{pad}{INDENT}],")

    lines.append(f"{pad}}},")
    lines.append(f"{INDENT}],")
    return "\n".join(lines)


def generate_schema(layouts: List[Layout], config: Optional[GlueConfig] = None) -> str:
    """
    Generate the schema module for an ordered layout list.

    Every layout class is imported from the class module so that bare
    references resolve.

    Returns:
        Module text (ends with a newline)
    """
    config = config or GlueConfig()
    lines = [GENERATED_NOTICE]

    if layouts:
        lines.append("import {")
        for layout in layouts:
            lines.append(f"{INDENT}{layout.name},")
        lines.append(f'}} from "./{config.class_module}";')
    lines.append("")

    lines.append("export const SCHEMA = new Map<any, any>([")
    for layout in layouts:
        lines.append(layout_to_schema_entry(layout))
    lines.append("]);")

    return "\n".join(lines) + "\n"


__all__ = ["scalar_tag", "type_to_schema", "layout_to_schema_entry", "generate_schema"]
