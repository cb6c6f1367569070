"""Type definitions for the dynamic_records library."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Kind(Enum):
    """Category of a field's value domain."""

    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BOOL = "bool"
    TIME = "time"
    STRUCT = "struct"
    POINTER = "pointer"
    SLICE = "slice"
    MAP = "map"
    INTERFACE = "interface"

    @property
    def bits(self) -> int:
        """Return the width in bits of a numeric kind (0 for everything else)."""
        return _KIND_BITS.get(self, 0)

    @property
    def is_signed(self) -> bool:
        return self in _SIGNED_KINDS

    @property
    def is_unsigned(self) -> bool:
        return self in _UNSIGNED_KINDS

    @property
    def is_integer(self) -> bool:
        return self in _SIGNED_KINDS or self in _UNSIGNED_KINDS

    @property
    def is_float(self) -> bool:
        return self in (Kind.FLOAT32, Kind.FLOAT64)

    @property
    def is_primitive(self) -> bool:
        """Return whether values of this kind are scalars with a typed accessor."""
        return self.family is not None

    @property
    def family(self) -> str | None:
        """Return the accessor family of this kind.

        Typed getters and setters accept any kind of the same family, e.g.
        ``int8()`` works on an ``int32`` field but not on a ``uint32`` one.
        """
        if self in _SIGNED_KINDS:
            return "signed"
        if self in _UNSIGNED_KINDS:
            return "unsigned"
        if self.is_float:
            return "float"
        return _SCALAR_FAMILIES.get(self)


_SIGNED_KINDS = frozenset({Kind.INT, Kind.INT8, Kind.INT16, Kind.INT32, Kind.INT64})
_UNSIGNED_KINDS = frozenset({Kind.UINT, Kind.UINT8, Kind.UINT16, Kind.UINT32, Kind.UINT64})
_SCALAR_FAMILIES = {Kind.STRING: "string", Kind.BOOL: "bool", Kind.TIME: "time"}

# Width of the platform-sized int and uint kinds
INT_BITS = 64

_KIND_BITS = {
    Kind.INT: INT_BITS,
    Kind.INT8: 8,
    Kind.INT16: 16,
    Kind.INT32: 32,
    Kind.INT64: 64,
    Kind.UINT: INT_BITS,
    Kind.UINT8: 8,
    Kind.UINT16: 16,
    Kind.UINT32: 32,
    Kind.UINT64: 64,
    Kind.FLOAT32: 32,
    Kind.FLOAT64: 64,
}

# Mapping from kind name strings to Kind enum values
KIND_NAMES: dict[str, Kind] = {k.value: k for k in Kind}

# Zero value of the time kind: 0001-01-01 00:00:00 UTC
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def type_range(kind: Kind) -> tuple[int, int]:
    """Return the inclusive (min, max) range of an integer kind."""
    bits = kind.bits
    if kind.is_signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if kind.is_unsigned:
        return 0, (1 << bits) - 1
    raise ValueError(f"Kind '{kind.value}' is not an integer kind")


def narrow(value: Any, kind: Kind) -> Any:
    """Convert a numeric value to the given kind the way a numeric cast does.

    Integers wrap modulo 2**bits (two's complement for signed kinds) and
    float32 rounds through IEEE single precision. Non-numeric kinds are
    returned unchanged.
    """
    if kind.is_integer:
        bits = kind.bits
        result = int(value) & ((1 << bits) - 1)
        if kind.is_signed and result >= 1 << (bits - 1):
            result -= 1 << bits
        return result
    if kind is Kind.FLOAT32:
        return _round_float32(float(value))
    if kind is Kind.FLOAT64:
        return float(value)
    return value


def _round_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


class TypeDefinition:
    """Base class for all type definitions.

    Subclasses expose ``kind``, ``name`` and ``package``. ``name`` and
    ``package`` are empty for unnamed types (pointers, slices, maps and
    anonymous records).
    """

    kind: Kind
    name: str
    package: str

    @property
    def qualified_name(self) -> str:
        if self.package and self.name:
            return f"{self.package}.{self.name}"
        return self.name


@dataclass(frozen=True)
class PrimitiveTypeDefinition(TypeDefinition):
    """Type definition wrapping a scalar kind (or the generic interface kind)."""

    primitive: Kind

    @property
    def kind(self) -> Kind:  # type: ignore[override]
        return self.primitive

    @property
    def name(self) -> str:  # type: ignore[override]
        return self.primitive.value

    @property
    def package(self) -> str:  # type: ignore[override]
        return ""

    def __str__(self) -> str:
        return self.primitive.value


@dataclass(frozen=True)
class OpaqueTypeDefinition(TypeDefinition):
    """An arbitrary Python class used as a field type.

    It has no record shape, so it behaves as the interface kind; when
    ``python_type`` is known, values are checked against it.
    """

    name: str  # type: ignore[misc]
    package: str = ""  # type: ignore[misc]
    python_type: type | None = field(default=None, compare=False)

    @property
    def kind(self) -> Kind:  # type: ignore[override]
        return Kind.INTERFACE

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class PointerTypeDefinition(TypeDefinition):
    """Nullable reference to a value of ``elem``."""

    elem: TypeDefinition

    @property
    def kind(self) -> Kind:  # type: ignore[override]
        return Kind.POINTER

    @property
    def name(self) -> str:  # type: ignore[override]
        return ""

    @property
    def package(self) -> str:  # type: ignore[override]
        return ""

    def __str__(self) -> str:
        return f"*{self.elem}"


@dataclass(frozen=True)
class SliceTypeDefinition(TypeDefinition):
    """Growable ordered sequence of ``elem`` values."""

    elem: TypeDefinition

    @property
    def kind(self) -> Kind:  # type: ignore[override]
        return Kind.SLICE

    @property
    def name(self) -> str:  # type: ignore[override]
        return ""

    @property
    def package(self) -> str:  # type: ignore[override]
        return ""

    def __str__(self) -> str:
        return f"[]{self.elem}"


@dataclass(frozen=True)
class MapTypeDefinition(TypeDefinition):
    """Mapping from ``key`` values to ``elem`` values."""

    key: TypeDefinition
    elem: TypeDefinition

    @property
    def kind(self) -> Kind:  # type: ignore[override]
        return Kind.MAP

    @property
    def name(self) -> str:  # type: ignore[override]
        return ""

    @property
    def package(self) -> str:  # type: ignore[override]
        return ""

    def __str__(self) -> str:
        return f"map[{self.key}]{self.elem}"


@dataclass(frozen=True)
class FieldDefinition:
    """Definition of a field within a record type."""

    name: str
    type: TypeDefinition
    tag: str = ""
    embedded: bool = False
    package: str = ""  # origin package for embedded and private fields

    @property
    def exported(self) -> bool:
        """Return whether the field may be written by bulk copies."""
        return not self.name.startswith("_")


@dataclass(eq=False, repr=False)
class RecordTypeDefinition(TypeDefinition):
    """Type definition for record (struct) types.

    Named records compare nominally by package and name. Anonymous records
    (empty name) compare field by field.

    ``record_class`` is the Python class whose instances hold the record's
    values. Records built from a field list get a synthesized class.
    """

    name: str = ""  # type: ignore[misc]
    package: str = ""  # type: ignore[misc]
    fields: list[FieldDefinition] = field(default_factory=list)
    record_class: type | None = None

    @property
    def kind(self) -> Kind:  # type: ignore[override]
        return Kind.STRUCT

    @property
    def is_anonymous(self) -> bool:
        return not self.name

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def ensure_class(self) -> type:
        """Return the record class, synthesizing one for classless records."""
        if self.record_class is None:
            from dynamic_records.instance import synthesize_record_class

            synthesize_record_class(self)
        return self.record_class  # type: ignore[return-value]

    def new_zero(self) -> Any:
        """Create an instance with every field set to its zero value.

        ``__init__`` is bypassed so that declared defaults do not leak in.
        """
        cls = self.ensure_class()
        instance = cls.__new__(cls)
        for f in self.fields:
            object.__setattr__(instance, f.name, zero_value(f.type))
        return instance

    def __str__(self) -> str:
        if self.name:
            return self.qualified_name
        members = "; ".join(f"{f.name} {f.type}" for f in self.fields)
        return f"struct{{{members}}}"

    def __repr__(self) -> str:
        return f"RecordTypeDefinition({self.qualified_name or 'struct'!r}, {len(self.fields)} fields)"


def primitive_type(kind: Kind) -> PrimitiveTypeDefinition:
    """Return the type definition of a scalar or interface kind."""
    if not kind.is_primitive and kind is not Kind.INTERFACE:
        raise ValueError(f"Kind '{kind.value}' is not a primitive kind")
    return PrimitiveTypeDefinition(kind)


INTERFACE_TYPE = PrimitiveTypeDefinition(Kind.INTERFACE)


def type_of_kind(kind: Kind) -> TypeDefinition:
    """Return the most general type definition of a kind.

    Composite kinds given without element types default to interface
    elements, and the bare struct kind is an empty anonymous record.
    """
    if kind is Kind.POINTER:
        return PointerTypeDefinition(INTERFACE_TYPE)
    if kind is Kind.SLICE:
        return SliceTypeDefinition(INTERFACE_TYPE)
    if kind is Kind.MAP:
        return MapTypeDefinition(INTERFACE_TYPE, INTERFACE_TYPE)
    if kind is Kind.STRUCT:
        return RecordTypeDefinition()
    return PrimitiveTypeDefinition(kind)


def zero_value(type_def: TypeDefinition) -> Any:
    """Return a fresh zero value of a type."""
    kind = type_def.kind
    if kind.is_integer:
        return 0
    if kind.is_float:
        return 0.0
    if kind is Kind.STRING:
        return ""
    if kind is Kind.BOOL:
        return False
    if kind is Kind.TIME:
        return ZERO_TIME
    if kind is Kind.SLICE:
        return []
    if kind is Kind.MAP:
        return {}
    if isinstance(type_def, RecordTypeDefinition):
        return type_def.new_zero()
    # pointer and interface
    return None


def have_same_types(
    first: TypeDefinition,
    second: TypeDefinition,
    _seen: set[tuple[int, int]] | None = None,
) -> bool:
    """Check whether two types are structurally equivalent.

    Kinds must match. Pointers and slices compare their elements, maps
    compare keys and elements, named records must have the same package and
    name, anonymous records compare their fields pairwise, and opaque
    classes must have the same package and name. Any other kinds are
    equivalent when the kinds match.
    """
    if first.kind != second.kind:
        return False

    kind = first.kind
    if kind in (Kind.POINTER, Kind.SLICE):
        return have_same_types(first.elem, second.elem, _seen)  # type: ignore[attr-defined]
    if kind is Kind.MAP:
        return have_same_types(first.elem, second.elem, _seen) and have_same_types(  # type: ignore[attr-defined]
            first.key, second.key, _seen  # type: ignore[attr-defined]
        )
    if kind is Kind.STRUCT:
        if first.name or second.name:
            return first.package == second.package and first.name == second.name
        return _have_same_fields(first, second, _seen)  # type: ignore[arg-type]
    if isinstance(first, OpaqueTypeDefinition) or isinstance(second, OpaqueTypeDefinition):
        return first.package == second.package and first.name == second.name
    return True


def _have_same_fields(
    first: RecordTypeDefinition,
    second: RecordTypeDefinition,
    seen: set[tuple[int, int]] | None,
) -> bool:
    if first is second:
        return True
    if seen is None:
        seen = set()
    pair = (id(first), id(second))
    if pair in seen:
        return True
    seen.add(pair)

    if len(first.fields) != len(second.fields):
        return False
    return all(
        a.name == b.name and a.embedded == b.embedded and have_same_types(a.type, b.type, seen)
        for a, b in zip(first.fields, second.fields)
    )
