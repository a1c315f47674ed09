"""
borsh-glue: Rust layouts to TypeScript classes and borsh schemas.

Reads Rust source trees, picks up every `struct` and `enum` deriving the
generation marker (`BorshSchema` by default) and emits two synchronized
TypeScript modules:

    - layouts.ts : one class per layout
    - schema.ts  : the SCHEMA table consumed by borsh-js

ARCHITECTURAL GUARANTEE:
------------------------
The canonical model (`types`, `layout`) contains ZERO knowledge of:
    - TypeScript syntax
    - borsh-js schema notation
    - The file system

All rendering happens in `backends`.
All backends consume the same ordered layout list unchanged.
"""

from .layout import Layout, LayoutField, LayoutKind
from .walker import generate_layouts, generate_layouts_from_file
from .output import generate_output, render_outputs

__version__ = "0.1.0"

__all__ = [
    "Layout",
    "LayoutField",
    "LayoutKind",
    "generate_layouts",
    "generate_layouts_from_file",
    "generate_output",
    "render_outputs",
]
