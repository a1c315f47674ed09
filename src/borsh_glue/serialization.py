"""
Serialization helpers for layout objects (Layout, LayoutField, BorshType).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
This module intentionally keeps serialization structure stable and explicit:
it is what `--dump-layouts` writes.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from borsh_glue.errors import SourceLocation
from borsh_glue.layout import Layout, LayoutField, LayoutKind
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
    Skip,
)


def type_to_dict(ty: BorshType) -> Any:
    if isinstance(ty, Scalar):
        return {"type": "scalar", "kind": ty.kind.value}
    if isinstance(ty, FixedBytes):
        return {"type": "fixed_bytes", "length": ty.length}
    if isinstance(ty, Option):
        return {"type": "option", "inner": type_to_dict(ty.inner)}
    if isinstance(ty, Vec):
        return {"type": "vec", "inner": type_to_dict(ty.inner)}
    if isinstance(ty, FixedArray):
        return {"type": "fixed_array", "inner": type_to_dict(ty.inner), "length": ty.length}
    if isinstance(ty, Map):
        return {"type": "map", "key": type_to_dict(ty.key), "value": type_to_dict(ty.value)}
    if isinstance(ty, Custom):
        return {"type": "custom", "name": ty.name}
    if isinstance(ty, Skip):
        return {"type": "skip"}
    raise TypeError(f"Unsupported BorshType: {type(ty)}")


def type_from_dict(d: Any) -> BorshType:
    t = d.get("type")
    if t == "scalar":
        return Scalar(ScalarKind(d["kind"]))
    if t == "fixed_bytes":
        return FixedBytes(d["length"])
    if t == "option":
        return Option(type_from_dict(d["inner"]))
    if t == "vec":
        return Vec(type_from_dict(d["inner"]))
    if t == "fixed_array":
        return FixedArray(type_from_dict(d["inner"]), d["length"])
    if t == "map":
        return Map(type_from_dict(d["key"]), type_from_dict(d["value"]))
    if t == "custom":
        return Custom(d["name"])
    if t == "skip":
        return Skip()
    raise TypeError(f"Unsupported type dict: {t}")


def field_to_dict(f: LayoutField) -> Dict[str, Any]:
    return {"name": f.name, "type": type_to_dict(f.ty)}


def field_from_dict(d: Dict[str, Any]) -> LayoutField:
    return LayoutField(name=d["name"], ty=type_from_dict(d["type"]))


def layout_to_dict(layout: Layout) -> Dict[str, Any]:
    source = None
    if layout.source is not None:
        source = {"path": layout.source.path, "line": layout.source.line}
    return {
        "name": layout.name,
        "kind": layout.kind.value,
        "fields": [field_to_dict(f) for f in layout.fields],
        "source": source,
    }


def layout_from_dict(d: Dict[str, Any]) -> Layout:
    source = d.get("source")
    return Layout(
        name=d["name"],
        kind=LayoutKind(d.get("kind", LayoutKind.STRUCT.value)),
        fields=tuple(field_from_dict(f) for f in d.get("fields", [])),
        source=SourceLocation(source["path"], source.get("line", 0)) if source else None,
    )


def layouts_to_dict(layouts: List[Layout]) -> Dict[str, Any]:
    return {"layouts": [layout_to_dict(layout) for layout in layouts]}


def layouts_from_dict(d: Dict[str, Any]) -> List[Layout]:
    return [layout_from_dict(layout) for layout in d.get("layouts", [])]


def layouts_to_json(layouts: List[Layout]) -> str:
    return json.dumps(layouts_to_dict(layouts), indent=2)


def layouts_from_json(s: str) -> List[Layout]:
    return layouts_from_dict(json.loads(s))


def layouts_to_yaml(layouts: List[Layout]) -> str:
    return yaml.safe_dump(layouts_to_dict(layouts), sort_keys=False)


def layouts_from_yaml(s: str) -> List[Layout]:
    return layouts_from_dict(yaml.safe_load(s))
