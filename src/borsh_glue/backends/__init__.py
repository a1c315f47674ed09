"""Backends for layout output generation (TypeScript classes, borsh-js schema)."""

from .typescript import generate_classes, type_to_annotation
from .borsh_schema import generate_schema, type_to_schema

__all__ = ["generate_classes", "type_to_annotation", "generate_schema", "type_to_schema"]
