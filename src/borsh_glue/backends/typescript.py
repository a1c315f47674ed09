"""
TypeScript class generator.

Renders each layout as a class extending the `Struct` or `Enum` helper
of the front end, with one annotated property per emitted field:

    export class TestStruct extends Struct {
        fieldA: BN;
        fieldC: OtherState[] | null;
    }

Skip fields are omitted. Enum classes carry one property per variant,
typed with the variant's generated struct class.
"""

from typing import List, Optional

from borsh_glue.config import GlueConfig
from borsh_glue.layout import Layout
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


GENERATED_NOTICE = "// This is an auto-generated file. To change it, edit the Rust sources and regenerate."

INDENT = "    "


def _array_annotation(element: str) -> str:
    # `number | null[]` would bind the brackets to `null` only
    if "|" in element:
        return f"({element})[]"
    return f"{element}[]"


def type_to_annotation(ty: BorshType) -> str:
    """
    TypeScript annotation of a canonical type.

    Raises:
        TypeError: For Skip (never rendered) or unknown types
    """
    if isinstance(ty, Scalar):
        if ty.kind == ScalarKind.BOOL:
            return "boolean"
        if ty.kind == ScalarKind.STRING:
            return "string"
        if ty.kind.bits <= 32:
            return "number"
        return "BN"

    if isinstance(ty, FixedBytes):
        return f"[{ty.length}]"

    if isinstance(ty, Option):
        return f"{type_to_annotation(ty.inner)} | null"

    if isinstance(ty, (Vec, FixedArray)):
        return _array_annotation(type_to_annotation(ty.inner))

    if isinstance(ty, Map):
        return f"Map<{type_to_annotation(ty.key)}, {type_to_annotation(ty.value)}>"

    if isinstance(ty, Custom):
        return ty.name

    raise TypeError(f"Unsupported type for a class annotation: {ty!r}")


def layout_to_class(layout: Layout) -> str:
    """Render one layout as an exported TypeScript class."""
    lines = [f"export class {layout.name} extends {layout.kind.value} {{"]
    for layout_field in layout.emitted_fields:
        lines.append(f"{INDENT}{layout_field.name}: {type_to_annotation(layout_field.ty)};")
    lines.append("}")
    return "\n".join(lines)


def _header(config: GlueConfig) -> List[str]:
    base = config.extensions_path.rstrip("/")
    return [
        GENERATED_NOTICE,
        'import BN from "bn.js";',
        f'import Enum from "{base}/enum";',
        f'import Struct from "{base}/struct";',
    ]


def generate_classes(layouts: List[Layout], config: Optional[GlueConfig] = None) -> str:
    """
    Generate the class module for an ordered layout list.

    Args:
        layouts: Layouts in emission order
        config: Supplies the extensions import path

    Returns:
        Module text (ends with a newline)
    """
    config = config or GlueConfig()
    blocks = ["\n".join(_header(config))]
    for layout in layouts:
        blocks.append(layout_to_class(layout))
    return "\n\n".join(blocks) + "\n"


__all__ = ["type_to_annotation", "layout_to_class", "generate_classes"]
