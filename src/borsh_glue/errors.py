"""
Error taxonomy for a generation run.

Every error here is fatal: the run aborts before either artifact is
written, because a class module without its matching schema entry (or
vice versa) is worse than no output at all.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SourceLocation:
    """Where a declaration was found (diagnostics only, never emitted)."""

    path: str
    line: int = 0

    def __str__(self) -> str:
        if self.line:
            return f"{self.path}:{self.line}"
        return self.path


class GlueError(Exception):
    """Base class for all generation failures."""
    pass


class ConfigError(GlueError):
    """Raised when a configuration file is unreadable or invalid."""
    pass


class SourceReadError(GlueError):
    """Raised when a source file or directory cannot be read."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Cannot read source '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SourceSyntaxError(GlueError):
    """Raised when a source file is not parseable as Rust declarations."""

    def __init__(self, message: str, path: Optional[str] = None,
                 line: int = 0, column: int = 0):
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        where = path or "<source>"
        if line:
            where += f":{line}:{column}"
        super().__init__(f"Syntax error in {where}: {message}")


class TypeSyntaxError(GlueError):
    """Raised when a type expression has unsupported syntax."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Unsupported type syntax '{expression}': {reason}")


class FieldResolutionError(GlueError):
    """A TypeSyntaxError annotated with the file, declaration and field."""

    def __init__(self, path: str, declaration: str, field: str,
                 expression: str, reason: str):
        self.path = path
        self.declaration = declaration
        self.field = field
        self.expression = expression
        self.reason = reason
        super().__init__(
            f"{path}: cannot resolve type of field '{field}' in "
            f"'{declaration}' ('{expression}'): {reason}"
        )


class OutputWriteError(GlueError):
    """Raised when the generated modules cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write output to '{path}': {reason}")


class LayoutCollisionError(GlueError):
    """Raised when two layouts would be emitted under the same name."""

    def __init__(self, name: str, first: SourceLocation, second: SourceLocation):
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"Layout name '{name}' is declared twice: at {first} and at {second}"
        )


__all__ = [
    "SourceLocation",
    "GlueError",
    "ConfigError",
    "SourceReadError",
    "SourceSyntaxError",
    "TypeSyntaxError",
    "FieldResolutionError",
    "OutputWriteError",
    "LayoutCollisionError",
]
