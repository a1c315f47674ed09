"""
Canonical Type System

Every field's wire type is represented as a small immutable tree, never
as a string.

    Scalar(U64)
    Option(Vec(FixedBytes(32)))
    FixedArray(Option(Custom("OtherState")), 3)

ARCHITECTURAL RULE:
    No TypeScript or schema notation in this module.
    Rendering belongs in backends.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum


class BorshType(ABC):
    """
    Base class for all canonical types.

    Structure only. Subclasses are frozen dataclasses so two trees
    compare equal exactly when they describe the same wire type.
    """
    pass


class ScalarKind(Enum):
    """Fixed-width scalars plus the length-prefixed string."""

    BOOL = "bool"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    STRING = "string"

    @property
    def bits(self) -> int:
        """Integer width in bits (0 for bool and string)."""
        digits = self.value[1:]
        if self.value[0] in ("u", "i") and digits.isdigit():
            return int(digits)
        return 0

    @property
    def is_signed(self) -> bool:
        return self.value.startswith("i")


@dataclass(frozen=True)
class Scalar(BorshType):
    """A primitive: bool, fixed-width integer or string."""

    kind: ScalarKind


@dataclass(frozen=True)
class FixedBytes(BorshType):
    """
    A raw byte array of known length.

    Examples:
        Pubkey    -> FixedBytes(32)
        [u8; 2]   -> FixedBytes(2)
    """

    length: int


@dataclass(frozen=True)
class Option(BorshType):
    """Optional value: one presence byte, then the inner value if present."""

    inner: BorshType


@dataclass(frozen=True)
class Vec(BorshType):
    """Length-prefixed homogeneous sequence."""

    inner: BorshType


@dataclass(frozen=True)
class FixedArray(BorshType):
    """Homogeneous sequence of a fixed length (no length prefix)."""

    inner: BorshType
    length: int


@dataclass(frozen=True)
class Map(BorshType):
    """Length-prefixed sequence of key/value pairs (BTreeMap, HashMap)."""

    key: BorshType
    value: BorshType


@dataclass(frozen=True)
class Custom(BorshType):
    """
    Reference to another layout by name.

    IMPORTANT:
        This object does NOT check that the layout exists.
        Unknown references are reported by the analyzer, not here.
    """

    name: str


@dataclass(frozen=True)
class Skip(BorshType):
    """Field present in the source but absent from both artifacts."""
    pass


BOOL = Scalar(ScalarKind.BOOL)
U8 = Scalar(ScalarKind.U8)
U16 = Scalar(ScalarKind.U16)
U32 = Scalar(ScalarKind.U32)
U64 = Scalar(ScalarKind.U64)
U128 = Scalar(ScalarKind.U128)
I8 = Scalar(ScalarKind.I8)
I16 = Scalar(ScalarKind.I16)
I32 = Scalar(ScalarKind.I32)
I64 = Scalar(ScalarKind.I64)
I128 = Scalar(ScalarKind.I128)
STRING = Scalar(ScalarKind.STRING)
PUBKEY = FixedBytes(32)
SKIP = Skip()


def referenced_layouts(ty: BorshType) -> list:
    """Names of all Custom references in a type tree, in tree order."""
    if isinstance(ty, Custom):
        return [ty.name]
    if isinstance(ty, (Option, Vec, FixedArray)):
        return referenced_layouts(ty.inner)
    if isinstance(ty, Map):
        return referenced_layouts(ty.key) + referenced_layouts(ty.value)
    return []
