"""
Type Expression Parser (raw field type text -> canonical type).

Converts the text written after a field's colon into a BorshType tree.

Grammar:
    type      := array | path generics?
    array     := '[' type ';' INTEGER ']'
    path      := '::'? IDENT ('::' IDENT)*
    generics  := '<' type (',' type)* ','? '>'

Syntax Notes:
    - Whitespace is insignificant, so token-stream spellings such as
      "Option < Vec < u8 > >" parse like "Option<Vec<u8>>"
    - Only the last path segment names the type (std::vec::Vec == Vec)
    - Any other bare identifier is another layout: Custom(name)

Independent from the declaration parser:
an `alias` directive replaces the text before this grammar runs, and
`skip` bypasses it entirely.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from borsh_glue.errors import TypeSyntaxError
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
    SKIP,
    U8,
)


SCALAR_NAMES: Dict[str, ScalarKind] = {
    "bool": ScalarKind.BOOL,
    "u8": ScalarKind.U8,
    "u16": ScalarKind.U16,
    "u32": ScalarKind.U32,
    "u64": ScalarKind.U64,
    "u128": ScalarKind.U128,
    "i8": ScalarKind.I8,
    "i16": ScalarKind.I16,
    "i32": ScalarKind.I32,
    "i64": ScalarKind.I64,
    "i128": ScalarKind.I128,
    "String": ScalarKind.STRING,
    "str": ScalarKind.STRING,
}

FIXED_BYTES_NAMES: Dict[str, int] = {
    "Pubkey": 32,
}

# Wrapper name -> (number of type arguments, constructor)
GENERIC_WRAPPERS: Dict[str, Tuple[int, Callable[..., BorshType]]] = {
    "Option": (1, Option),
    "Vec": (1, Vec),
    "VecDeque": (1, Vec),
    "BTreeMap": (2, Map),
    "HashMap": (2, Map),
}

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<punct>::|[<>\[\];,])"
    r"|(?P<int>\d[\d_]*(?:[ui](?:8|16|32|64|128|size))?)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<bad>\S)"
    r")"
)

_INT_SUFFIX_RE = re.compile(r"[ui](?:8|16|32|64|128|size)$")


def _tokenize(expr_str: str) -> List[Tuple[str, str]]:
    """Tokenize a type expression into (kind, text) pairs."""
    tokens = []
    for match in _TOKEN_RE.finditer(expr_str):
        kind = match.lastgroup
        if kind is None:
            continue
        text = match.group(kind)
        if kind == "bad":
            raise TypeSyntaxError(expr_str, f"unexpected character '{text}'")
        tokens.append((kind, text))
    if not tokens:
        raise TypeSyntaxError(expr_str, "empty type expression")
    return tokens


def _expect(tokens: List[Tuple[str, str]], pos: int, text: str, expr_str: str) -> int:
    if pos >= len(tokens):
        raise TypeSyntaxError(expr_str, f"expected '{text}' but the expression ended")
    if tokens[pos][1] != text:
        raise TypeSyntaxError(expr_str, f"expected '{text}', got '{tokens[pos][1]}'")
    return pos + 1


def _parse_type(tokens: List[Tuple[str, str]], pos: int, expr_str: str) -> tuple:
    """Parse one type starting at pos."""
    if pos >= len(tokens):
        raise TypeSyntaxError(expr_str, "unexpected end of expression")

    if tokens[pos][1] == "[":
        return _parse_array(tokens, pos, expr_str)

    return _parse_path_type(tokens, pos, expr_str)


def _parse_array(tokens: List[Tuple[str, str]], pos: int, expr_str: str) -> tuple:
    """Parse [T; N]."""
    pos = _expect(tokens, pos, "[", expr_str)
    inner, pos = _parse_type(tokens, pos, expr_str)
    pos = _expect(tokens, pos, ";", expr_str)

    if pos >= len(tokens) or tokens[pos][0] != "int":
        found = tokens[pos][1] if pos < len(tokens) else "end of expression"
        raise TypeSyntaxError(expr_str, f"array length must be an integer literal, got '{found}'")
    length = _parse_int_literal(tokens[pos][1])
    pos = _expect(tokens, pos + 1, "]", expr_str)

    # Byte arrays are raw bytes on the wire, not an array of u8 values
    if inner == U8:
        return FixedBytes(length), pos
    return FixedArray(inner, length), pos


def _parse_int_literal(text: str) -> int:
    return int(_INT_SUFFIX_RE.sub("", text).replace("_", ""))


def _parse_path_type(tokens: List[Tuple[str, str]], pos: int, expr_str: str) -> tuple:
    """Parse a (possibly qualified) name with optional generic arguments."""
    if tokens[pos][1] == "::":
        pos += 1

    segments = []
    while True:
        if pos >= len(tokens) or tokens[pos][0] != "ident":
            found = tokens[pos][1] if pos < len(tokens) else "end of expression"
            raise TypeSyntaxError(expr_str, f"expected a type name, got '{found}'")
        segments.append(tokens[pos][1])
        pos += 1
        if pos < len(tokens) and tokens[pos][1] == "::":
            pos += 1
            continue
        break

    name = segments[-1]
    arguments: Optional[List[BorshType]] = None
    if pos < len(tokens) and tokens[pos][1] == "<":
        arguments, pos = _parse_generic_arguments(tokens, pos, expr_str)

    return _classify(name, arguments, expr_str), pos


def _parse_generic_arguments(tokens: List[Tuple[str, str]], pos: int, expr_str: str) -> tuple:
    """Parse <T, U, ...> (a trailing comma is allowed)."""
    pos = _expect(tokens, pos, "<", expr_str)
    arguments = []
    while True:
        argument, pos = _parse_type(tokens, pos, expr_str)
        arguments.append(argument)
        if pos < len(tokens) and tokens[pos][1] == ",":
            pos += 1
            if pos < len(tokens) and tokens[pos][1] == ">":
                break
            continue
        break
    pos = _expect(tokens, pos, ">", expr_str)
    return arguments, pos


def _classify(name: str, arguments: Optional[List[BorshType]], expr_str: str) -> BorshType:
    """Map a resolved name (plus generic arguments) to a canonical type."""
    if name in GENERIC_WRAPPERS:
        arity, constructor = GENERIC_WRAPPERS[name]
        count = len(arguments) if arguments else 0
        if count != arity:
            raise TypeSyntaxError(
                expr_str, f"'{name}' expects {arity} type argument(s), got {count}"
            )
        return constructor(*arguments)

    if arguments is not None:
        raise TypeSyntaxError(
            expr_str, f"generic arguments on '{name}' are not supported"
        )

    if name in SCALAR_NAMES:
        return Scalar(SCALAR_NAMES[name])

    if name in FIXED_BYTES_NAMES:
        return FixedBytes(FIXED_BYTES_NAMES[name])

    # Open-world default: every other identifier names another layout
    return Custom(name)


def parse_type_expression(expr_str: str) -> BorshType:
    """
    Parse a textual type expression into a BorshType.

    Args:
        expr_str: Type expression as written in the source

    Returns:
        Canonical type tree

    Raises:
        TypeSyntaxError: If the syntax is malformed or unsupported
    """
    if expr_str is None or not expr_str.strip():
        raise TypeSyntaxError(expr_str or "", "empty type expression")

    tokens = _tokenize(expr_str)
    ty, pos = _parse_type(tokens, 0, expr_str)

    if pos < len(tokens):
        remaining = " ".join(text for _, text in tokens[pos:])
        raise TypeSyntaxError(expr_str, f"unexpected tokens after type: '{remaining}'")

    return ty


def resolve_field_type(declared: str, alias: Optional[str] = None, skip: bool = False) -> BorshType:
    """
    Resolve a field's type honoring its directives.

    Precedence:
        skip   -> Skip, whatever the declared type or alias
        alias  -> the alias text replaces the declared text
        else   -> the declared text

    Raises:
        TypeSyntaxError: If the effective expression cannot be parsed
    """
    if skip:
        return SKIP
    if alias is not None:
        return parse_type_expression(alias)
    return parse_type_expression(declared)


__all__ = [
    "parse_type_expression",
    "resolve_field_type",
    "SCALAR_NAMES",
    "GENERIC_WRAPPERS",
]
