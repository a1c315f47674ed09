"""
Rust Declaration Parser (Layer 1: Rust source -> raw declarations).

Extracts every `struct` and `enum` deriving the generation marker from
one source file:

    #[derive(BorshSchema, BorshSerialize)]
    pub struct TestStruct {
        field_a: u64,
        #[alias(Option<Vec<OtherState>>)]
        field_c: StatePool,
        #[schema_skip]
        skipped_field: Option<u32>,
    }

Syntax Notes:
    - The file is tokenized and grouped into delimiter trees, so
      unbalanced (), [] or {} anywhere in the file is a syntax error
    - Comments (including doc comments) are discarded
    - Unmarked items are skipped by balanced-group scanning
    - Inline `mod name { ... }` bodies are searched too
    - Field types are returned as TEXT; resolving them is the job of
      `type_parser`, never of this module
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from borsh_glue.errors import SourceLocation, SourceSyntaxError


DEFAULT_MARKER = "BorshSchema"

ALIAS_DIRECTIVE = "alias"
SKIP_DIRECTIVES = ("schema_skip", "skip", "borsh_skip")

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")": "(", "]": "[", "}": "{"}

_WHITESPACE_RE = re.compile(r"\s+")
_RAW_STRING_START_RE = re.compile(r'b?r(#*)"')
_STRING_RE = re.compile(r'b?"(?:[^"\\]|\\.)*"', re.DOTALL)
_CHAR_RE = re.compile(r"b?'(?:[^'\\\n]|\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F_]{1,6}\}|.))'")
_LIFETIME_RE = re.compile(r"'[^\W\d]\w*")
_IDENT_RE = re.compile(r"(?:r#)?[^\W\d]\w*")
_NUMBER_RE = re.compile(r"\d\w*(?:\.\d\w*)?")
_PUNCT_RE = re.compile(r"::|->|=>|[!#$%&*+,\-./:;<=>?@^|~]")


class DeclarationKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"


@dataclass(frozen=True)
class RawField:
    """
    A field exactly as declared.

    Properties:
        name: Source identifier, or None for a positional (tuple) field
        type_text: The declared type expression as text
        alias: Text of an `#[alias(...)]` directive, if any
        skip: True when a skip directive is present
    """

    name: Optional[str]
    type_text: str
    alias: Optional[str] = None
    skip: bool = False
    line: int = 0


@dataclass(frozen=True)
class RawVariant:
    """An enum variant; `fields` is empty for payload-less variants."""

    name: str
    fields: Tuple[RawField, ...] = ()


@dataclass(frozen=True)
class RawDeclaration:
    """A marked `struct` or `enum` with its fields or variants."""

    name: str
    kind: DeclarationKind
    fields: Tuple[RawField, ...] = ()
    variants: Tuple[RawVariant, ...] = ()
    path: Optional[str] = None
    line: int = 0

    @property
    def location(self) -> SourceLocation:
        return SourceLocation(path=self.path or "<source>", line=self.line)


# =============================================================================
# TOKENS AND DELIMITER TREES
# =============================================================================

@dataclass
class Token:
    kind: str  # ident, lifetime, literal, punct
    text: str
    line: int
    column: int


@dataclass
class Group:
    delimiter: str  # "(", "[" or "{"
    tokens: List[Union[Token, "Group"]] = field(default_factory=list)
    line: int = 0
    column: int = 0


Node = Union[Token, Group]


class _Scanner:
    """Turns source text into a flat token stream (delimiters included)."""

    def __init__(self, text: str, path: Optional[str]):
        self.text = text
        self.path = path
        self.pos = 0
        self.line = 1
        self.line_start = 0

    def error(self, message: str, pos: Optional[int] = None) -> SourceSyntaxError:
        if pos is None:
            pos = self.pos
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        return SourceSyntaxError(message, self.path, line, column)

    def _advance(self, end: int) -> None:
        newlines = self.text.count("\n", self.pos, end)
        if newlines:
            self.line += newlines
            self.line_start = self.text.rfind("\n", self.pos, end) + 1
        self.pos = end

    def _token(self, kind: str, end: int) -> Token:
        token = Token(kind, self.text[self.pos:end], self.line, self.pos - self.line_start + 1)
        self._advance(end)
        return token

    def _skip_block_comment(self) -> None:
        start = self.pos
        depth = 0
        i = self.pos
        while i < len(self.text):
            if self.text.startswith("/*", i):
                depth += 1
                i += 2
            elif self.text.startswith("*/", i):
                depth -= 1
                i += 2
                if depth == 0:
                    self._advance(i)
                    return
            else:
                i += 1
        raise self.error("unterminated block comment", start)

    def _raw_string_end(self, match) -> int:
        closing = '"' + match.group(1)
        end = self.text.find(closing, match.end())
        if end < 0:
            raise self.error("unterminated raw string literal")
        return end + len(closing)

    def tokens(self):
        text = self.text
        while self.pos < len(text):
            pos = self.pos
            ch = text[pos]

            m = _WHITESPACE_RE.match(text, pos)
            if m:
                self._advance(m.end())
                continue

            if text.startswith("//", pos):
                end = text.find("\n", pos)
                self._advance(len(text) if end < 0 else end)
                continue

            if text.startswith("/*", pos):
                self._skip_block_comment()
                continue

            m = _RAW_STRING_START_RE.match(text, pos)
            if m:
                yield self._token("literal", self._raw_string_end(m))
                continue

            if ch == '"' or text.startswith('b"', pos):
                m = _STRING_RE.match(text, pos)
                if not m:
                    raise self.error("unterminated string literal")
                yield self._token("literal", m.end())
                continue

            m = _CHAR_RE.match(text, pos)
            if m:
                yield self._token("literal", m.end())
                continue

            if ch == "'":
                m = _LIFETIME_RE.match(text, pos)
                if not m:
                    raise self.error("malformed character literal")
                yield self._token("lifetime", m.end())
                continue

            m = _IDENT_RE.match(text, pos)
            if m:
                yield self._token("ident", m.end())
                continue

            m = _NUMBER_RE.match(text, pos)
            if m:
                yield self._token("literal", m.end())
                continue

            if ch in _OPENERS or ch in _CLOSERS:
                yield self._token("delim", pos + 1)
                continue

            m = _PUNCT_RE.match(text, pos)
            if m:
                yield self._token("punct", m.end())
                continue

            raise self.error(f"unexpected character {ch!r}")


def tokenize(text: str, path: Optional[str] = None) -> List[Node]:
    """
    Tokenize Rust source into delimiter trees.

    Raises:
        SourceSyntaxError: On illegal characters, unterminated literals or
            comments, and unbalanced or mismatched delimiters
    """
    root = Group(delimiter="")
    stack = [root]
    for token in _Scanner(text, path).tokens():
        if token.kind != "delim":
            stack[-1].tokens.append(token)
        elif token.text in _OPENERS:
            group = Group(delimiter=token.text, line=token.line, column=token.column)
            stack[-1].tokens.append(group)
            stack.append(group)
        else:
            if len(stack) == 1:
                raise SourceSyntaxError(
                    f"unmatched closing '{token.text}'", path, token.line, token.column
                )
            group = stack.pop()
            if _CLOSERS[token.text] != group.delimiter:
                raise SourceSyntaxError(
                    f"mismatched delimiter: '{group.delimiter}' opened at line "
                    f"{group.line} closed by '{token.text}'",
                    path, token.line, token.column,
                )
    if len(stack) > 1:
        group = stack[-1]
        raise SourceSyntaxError(
            f"unclosed delimiter '{group.delimiter}'", path, group.line, group.column
        )
    return root.tokens


def render_tokens(nodes: List[Node]) -> str:
    """Rebuild source text from tokens, separated by single spaces."""
    parts = []
    for node in nodes:
        if isinstance(node, Group):
            inner = render_tokens(node.tokens)
            close = _OPENERS[node.delimiter]
            parts.append(f"{node.delimiter} {inner} {close}" if inner else node.delimiter + close)
        else:
            parts.append(node.text)
    return " ".join(parts)


# =============================================================================
# ITEM PARSING
# =============================================================================

def _is_punct(node: Optional[Node], text: str) -> bool:
    return isinstance(node, Token) and node.kind == "punct" and node.text == text


def _is_ident(node: Optional[Node], text: Optional[str] = None) -> bool:
    if not isinstance(node, Token) or node.kind != "ident":
        return False
    return text is None or node.text == text


def _is_group(node: Optional[Node], delimiter: str) -> bool:
    return isinstance(node, Group) and node.delimiter == delimiter


def _ident_name(token: Token) -> str:
    return token.text[2:] if token.text.startswith("r#") else token.text


class _Cursor:
    """Read position inside one delimiter group."""

    def __init__(self, nodes: List[Node], path: Optional[str], owner: Optional[Group] = None):
        self.nodes = nodes
        self.pos = 0
        self.path = path
        self.owner = owner

    def at_end(self) -> bool:
        return self.pos >= len(self.nodes)

    def peek(self, offset: int = 0) -> Optional[Node]:
        index = self.pos + offset
        return self.nodes[index] if index < len(self.nodes) else None

    def next(self) -> Optional[Node]:
        node = self.peek()
        self.pos += 1
        return node

    def error(self, message: str, node: Optional[Node] = None) -> SourceSyntaxError:
        if node is None:
            node = self.peek()
        if node is None and self.nodes:
            node = self.nodes[-1]
        if node is None:
            node = self.owner
        line = node.line if node is not None else 0
        column = node.column if node is not None else 0
        return SourceSyntaxError(message, self.path, line, column)

    def expect_ident(self, what: str) -> Token:
        node = self.next()
        if not _is_ident(node):
            raise self.error(f"expected {what}", node)
        return node


def _parse_outer_attributes(cur: _Cursor) -> List[Group]:
    """Consume `#[...]` attributes (inner `#![...]` ones are discarded)."""
    attributes = []
    while _is_punct(cur.peek(), "#"):
        hash_token = cur.next()
        inner = _is_punct(cur.peek(), "!")
        if inner:
            cur.next()
        body = cur.next()
        if not _is_group(body, "["):
            raise cur.error("expected '[' after '#'", body or hash_token)
        if not inner:
            attributes.append(body)
    return attributes


def _skip_visibility(cur: _Cursor) -> None:
    """Consume `pub`, `pub(crate)`, `pub(super)`, `pub(in path)`."""
    if not _is_ident(cur.peek(), "pub"):
        return
    cur.next()
    group = cur.peek()
    if _is_group(group, "(") and group.tokens and _is_ident(group.tokens[0]):
        if group.tokens[0].text in ("crate", "self", "super", "in"):
            cur.next()


def _split_commas(nodes: List[Node], track_angles: bool) -> List[List[Node]]:
    """Split a group's contents on top-level commas, dropping empty parts."""
    parts: List[List[Node]] = [[]]
    depth = 0
    for node in nodes:
        if track_angles and _is_punct(node, "<"):
            depth += 1
        elif track_angles and _is_punct(node, ">") and depth > 0:
            depth -= 1
        elif depth == 0 and _is_punct(node, ","):
            parts.append([])
            continue
        parts[-1].append(node)
    return [part for part in parts if part]


def _derive_lists_marker(group: Group, marker: str) -> bool:
    """True when a `derive(...)` argument list names the marker."""
    for entry in _split_commas(group.tokens, track_angles=True):
        idents = [node for node in entry if _is_ident(node)]
        if idents and _ident_name(idents[-1]) == marker:
            return True
    return False


def _contains_marker_derive(nodes: List[Node], marker: str) -> bool:
    """Search attribute contents for derive(..marker..), through cfg_attr."""
    for i, node in enumerate(nodes):
        following = nodes[i + 1] if i + 1 < len(nodes) else None
        if _is_ident(node, "derive") and _is_group(following, "("):
            if _derive_lists_marker(following, marker):
                return True
        elif _is_ident(node, "cfg_attr") and _is_group(following, "("):
            if _contains_marker_derive(following.tokens, marker):
                return True
    return False


def is_marked(attributes: List[Group], marker: str = DEFAULT_MARKER) -> bool:
    """Whether any attribute derives the generation marker."""
    return any(_contains_marker_derive(attr.tokens, marker) for attr in attributes)


def _field_directives(attributes: List[Group], cur: _Cursor) -> Tuple[Optional[str], bool]:
    """Extract (alias text, skip flag) from a field's attributes."""
    alias = None
    skip = False
    for attr in attributes:
        if not attr.tokens or not _is_ident(attr.tokens[0]):
            continue
        name = attr.tokens[0].text
        if name == ALIAS_DIRECTIVE:
            if len(attr.tokens) != 2 or not _is_group(attr.tokens[1], "("):
                raise cur.error("alias directive must be written #[alias(<type>)]", attr)
            alias = render_tokens(attr.tokens[1].tokens)
        elif name in SKIP_DIRECTIVES and len(attr.tokens) == 1:
            skip = True
    return alias, skip


def _skip_generics(cur: _Cursor) -> None:
    """Consume a `<...>` generic parameter list, if present."""
    if not _is_punct(cur.peek(), "<"):
        return
    depth = 0
    while not cur.at_end():
        node = cur.next()
        if _is_punct(node, "<"):
            depth += 1
        elif _is_punct(node, ">"):
            depth -= 1
            if depth == 0:
                return
    raise cur.error("unterminated generic parameter list")


def _skip_where_clause(cur: _Cursor) -> None:
    """Consume a `where` clause up to the body or the closing `;`."""
    if not _is_ident(cur.peek(), "where"):
        return
    while not cur.at_end():
        node = cur.peek()
        if _is_group(node, "{") or _is_punct(node, ";"):
            return
        cur.next()


def _parse_named_fields(group: Group, path: Optional[str]) -> Tuple[RawField, ...]:
    fields = []
    for part in _split_commas(group.tokens, track_angles=True):
        cur = _Cursor(part, path, owner=group)
        attributes = _parse_outer_attributes(cur)
        _skip_visibility(cur)
        name_token = cur.expect_ident("field name")
        if not _is_punct(cur.next(), ":"):
            raise cur.error(f"expected ':' after field '{name_token.text}'", name_token)
        type_nodes = part[cur.pos:]
        if not type_nodes:
            raise cur.error(f"missing type for field '{name_token.text}'", name_token)
        alias, skip = _field_directives(attributes, cur)
        fields.append(RawField(
            name=_ident_name(name_token),
            type_text=render_tokens(type_nodes),
            alias=alias,
            skip=skip,
            line=name_token.line,
        ))
    return tuple(fields)


def _parse_tuple_fields(group: Group, path: Optional[str]) -> Tuple[RawField, ...]:
    fields = []
    for part in _split_commas(group.tokens, track_angles=True):
        cur = _Cursor(part, path, owner=group)
        attributes = _parse_outer_attributes(cur)
        _skip_visibility(cur)
        type_nodes = part[cur.pos:]
        if not type_nodes:
            raise cur.error("missing type for positional field")
        alias, skip = _field_directives(attributes, cur)
        first = type_nodes[0]
        fields.append(RawField(
            name=None,
            type_text=render_tokens(type_nodes),
            alias=alias,
            skip=skip,
            line=first.line,
        ))
    return tuple(fields)


def _parse_struct(cur: _Cursor) -> RawDeclaration:
    cur.next()  # struct
    name_token = cur.expect_ident("struct name")
    _skip_generics(cur)
    _skip_where_clause(cur)

    body = cur.next()
    if _is_group(body, "{"):
        fields = _parse_named_fields(body, cur.path)
    elif _is_group(body, "("):
        fields = _parse_tuple_fields(body, cur.path)
        _skip_where_clause(cur)
        if not _is_punct(cur.next(), ";"):
            raise cur.error(f"expected ';' after tuple struct '{name_token.text}'", body)
    elif _is_punct(body, ";"):
        fields = ()
    else:
        raise cur.error(f"expected struct body for '{name_token.text}'", body or name_token)

    return RawDeclaration(
        name=_ident_name(name_token),
        kind=DeclarationKind.STRUCT,
        fields=fields,
        path=cur.path,
        line=name_token.line,
    )


def _parse_variant(part: List[Node], owner: Group, path: Optional[str]) -> RawVariant:
    cur = _Cursor(part, path, owner=owner)
    _parse_outer_attributes(cur)
    name_token = cur.expect_ident("variant name")

    fields: Tuple[RawField, ...] = ()
    payload = cur.peek()
    if _is_group(payload, "{"):
        cur.next()
        fields = _parse_named_fields(payload, path)
    elif _is_group(payload, "("):
        cur.next()
        fields = _parse_tuple_fields(payload, path)

    if not cur.at_end():
        if not _is_punct(cur.peek(), "=") or cur.peek(1) is None:
            raise cur.error(f"unexpected tokens after variant '{name_token.text}'")
    return RawVariant(name=_ident_name(name_token), fields=fields)


def _parse_enum(cur: _Cursor) -> RawDeclaration:
    cur.next()  # enum
    name_token = cur.expect_ident("enum name")
    _skip_generics(cur)
    _skip_where_clause(cur)

    body = cur.next()
    if not _is_group(body, "{"):
        raise cur.error(f"expected enum body for '{name_token.text}'", body or name_token)

    variants = tuple(
        _parse_variant(part, body, cur.path)
        for part in _split_commas(body.tokens, track_angles=False)
    )
    return RawDeclaration(
        name=_ident_name(name_token),
        kind=DeclarationKind.ENUM,
        variants=variants,
        path=cur.path,
        line=name_token.line,
    )


def _skip_item(cur: _Cursor) -> None:
    """Skip an unmarked item: up to a top-level `;` or a `{...}` body."""
    start = cur.peek()
    while not cur.at_end():
        node = cur.next()
        if _is_punct(node, ";") or _is_group(node, "{"):
            return
    raise cur.error("unexpected end of file inside an item", start)


def _parse_items(nodes: List[Node], path: Optional[str], marker: str,
                 declarations: List[RawDeclaration]) -> None:
    cur = _Cursor(nodes, path)
    while not cur.at_end():
        attributes = _parse_outer_attributes(cur)
        if cur.at_end():
            if attributes:
                raise cur.error("expected an item after attributes", attributes[-1])
            break
        _skip_visibility(cur)
        node = cur.peek()

        if _is_ident(node, "struct") and is_marked(attributes, marker):
            declarations.append(_parse_struct(cur))
        elif _is_ident(node, "enum") and is_marked(attributes, marker):
            declarations.append(_parse_enum(cur))
        elif _is_ident(node, "mod") and _is_ident(cur.peek(1)) and _is_group(cur.peek(2), "{"):
            body = cur.peek(2)
            cur.pos += 3
            _parse_items(body.tokens, path, marker, declarations)
        else:
            _skip_item(cur)


def parse_source(text: str, path: Optional[str] = None,
                 marker: str = DEFAULT_MARKER) -> List[RawDeclaration]:
    """
    Parse Rust source text into the marked declarations it contains.

    Args:
        text: Rust source
        path: File path used in error messages and source locations
        marker: Derive name that opts a declaration in

    Returns:
        Marked declarations in source order (possibly empty)

    Raises:
        SourceSyntaxError: If the file is not syntactically valid
    """
    nodes = tokenize(text, path)
    declarations: List[RawDeclaration] = []
    _parse_items(nodes, path, marker, declarations)
    return declarations


__all__ = [
    "DEFAULT_MARKER",
    "DeclarationKind",
    "RawField",
    "RawVariant",
    "RawDeclaration",
    "tokenize",
    "render_tokens",
    "is_marked",
    "parse_source",
]
