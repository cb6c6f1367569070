"""Mapping between Python annotations, values and type definitions.

Statically declared records are ordinary dataclasses. Field widths that
Python's ``int`` and ``float`` cannot express are given with the
``Annotated`` markers defined here::

    @dataclass
    class Person:
        name: str = ""
        age: Int32 = 0
        nickname: Optional[str] = field(default=None, metadata={"tag": 'json:"nick"'})
"""

from __future__ import annotations

import dataclasses
import types as _pytypes
import typing
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Annotated, Any, Optional, Union

from dynamic_records.errors import UnresolvedTypeError
from dynamic_records.types import (
    INTERFACE_TYPE,
    FieldDefinition,
    Kind,
    MapTypeDefinition,
    OpaqueTypeDefinition,
    PointerTypeDefinition,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    SliceTypeDefinition,
    TypeDefinition,
    have_same_types,
    type_of_kind,
    type_range,
)

# Class attribute carrying the record type of synthesized and reflected classes
RECORD_TYPE_ATTRIBUTE = "__record_type__"

# Width markers for dataclass annotations
Int = Annotated[int, Kind.INT]
Int8 = Annotated[int, Kind.INT8]
Int16 = Annotated[int, Kind.INT16]
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
Uint = Annotated[int, Kind.UINT]
Uint8 = Annotated[int, Kind.UINT8]
Uint16 = Annotated[int, Kind.UINT16]
Uint32 = Annotated[int, Kind.UINT32]
Uint64 = Annotated[int, Kind.UINT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]

_SCALAR_ANNOTATIONS: dict[Any, Kind] = {
    int: Kind.INT,
    float: Kind.FLOAT64,
    str: Kind.STRING,
    bool: Kind.BOOL,
    datetime: Kind.TIME,
}


def record_type_of(value: Any) -> RecordTypeDefinition | None:
    """Return the record type of a record class or instance.

    Synthesized classes carry their record type; dataclasses get one derived
    from their fields and annotations, stored on the class on first use.
    Anything else is not a record and yields None.

    Raises:
        UnresolvedTypeError: If the annotations of a dataclass cannot be
            evaluated.
    """
    cls = value if isinstance(value, type) else type(value)
    record = cls.__dict__.get(RECORD_TYPE_ATTRIBUTE)
    if isinstance(record, RecordTypeDefinition):
        return record
    if not dataclasses.is_dataclass(cls):
        return None

    # Register before resolving fields so self-references find the stub
    record = RecordTypeDefinition(name=cls.__qualname__, package=cls.__module__, record_class=cls)
    setattr(cls, RECORD_TYPE_ATTRIBUTE, record)
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, AttributeError, TypeError, SyntaxError) as e:
        delattr(cls, RECORD_TYPE_ATTRIBUTE)
        raise UnresolvedTypeError(
            f"Cannot resolve the field annotations of {cls.__qualname__}: {e}"
        ) from e

    for f in dataclasses.fields(cls):
        try:
            type_def = type_of_annotation(hints.get(f.name, Any))
        except UnresolvedTypeError:
            delattr(cls, RECORD_TYPE_ATTRIBUTE)
            raise
        embedded = bool(f.metadata.get("embedded", False))
        if embedded:
            package = type_def.package
        elif f.name.startswith("_"):
            package = cls.__module__
        else:
            package = ""
        record.fields.append(
            FieldDefinition(
                name=f.name,
                type=type_def,
                tag=f.metadata.get("tag", ""),
                embedded=embedded,
                package=package,
            )
        )
    return record


def type_of_annotation(annotation: Any) -> TypeDefinition:
    """Resolve a Python type annotation to a type definition.

    ``Optional[X]`` is a pointer to X, ``list[X]`` a slice, ``dict[K, V]`` a
    map and a dataclass a record. ``Annotated`` metadata holding a Kind or a
    TypeDefinition takes precedence over the annotated base. Classes with no
    record shape become opaque interface types.
    """
    if isinstance(annotation, TypeDefinition):
        return annotation
    if isinstance(annotation, Kind):
        return type_of_kind(annotation)
    if annotation is None or annotation is type(None) or annotation is Any or annotation is object:
        return INTERFACE_TYPE

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is Annotated:
        for marker in annotation.__metadata__:
            if isinstance(marker, (Kind, TypeDefinition)):
                return type_of_annotation(marker)
        return type_of_annotation(args[0])

    if origin is Union or origin is _pytypes.UnionType:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return PointerTypeDefinition(type_of_annotation(members[0]))
        return INTERFACE_TYPE

    if origin in (list, tuple, Sequence):
        if not args or (origin is tuple and (len(args) != 2 or args[1] is not Ellipsis)):
            return SliceTypeDefinition(INTERFACE_TYPE)
        return SliceTypeDefinition(type_of_annotation(args[0]))

    if origin in (dict, Mapping):
        if len(args) != 2:
            return MapTypeDefinition(INTERFACE_TYPE, INTERFACE_TYPE)
        return MapTypeDefinition(type_of_annotation(args[0]), type_of_annotation(args[1]))

    if isinstance(annotation, type):
        if annotation in _SCALAR_ANNOTATIONS:
            return PrimitiveTypeDefinition(_SCALAR_ANNOTATIONS[annotation])
        if annotation in (list, tuple):
            return SliceTypeDefinition(INTERFACE_TYPE)
        if annotation is dict:
            return MapTypeDefinition(INTERFACE_TYPE, INTERFACE_TYPE)
        record = record_type_of(annotation)
        if record is not None:
            return record
        return OpaqueTypeDefinition(
            name=annotation.__qualname__, package=annotation.__module__, python_type=annotation
        )
    return INTERFACE_TYPE


def annotation_of(type_def: TypeDefinition) -> Any:
    """Return a Python annotation describing a type definition.

    The result is ``Annotated`` with the definition itself, so that
    ``type_of_annotation(annotation_of(t)) is t``.
    """
    return Annotated[_python_type_of(type_def), type_def]


def _python_type_of(type_def: TypeDefinition) -> Any:
    kind = type_def.kind
    if kind.is_integer:
        return int
    if kind.is_float:
        return float
    if kind is Kind.STRING:
        return str
    if kind is Kind.BOOL:
        return bool
    if kind is Kind.TIME:
        return datetime
    if isinstance(type_def, PointerTypeDefinition):
        return Optional[_python_type_of(type_def.elem)]
    if isinstance(type_def, SliceTypeDefinition):
        return list[_python_type_of(type_def.elem)]  # type: ignore[misc]
    if isinstance(type_def, MapTypeDefinition):
        return dict[_python_type_of(type_def.key), _python_type_of(type_def.elem)]  # type: ignore[misc]
    if isinstance(type_def, RecordTypeDefinition):
        return type_def.record_class if type_def.record_class is not None else Any
    if isinstance(type_def, OpaqueTypeDefinition) and type_def.python_type is not None:
        return type_def.python_type
    return Any


def type_of_value(value: Any) -> TypeDefinition:
    """Infer the type definition of a runtime value."""
    if isinstance(value, bool):
        return PrimitiveTypeDefinition(Kind.BOOL)
    for cls, kind in _SCALAR_ANNOTATIONS.items():
        if isinstance(value, cls):
            return PrimitiveTypeDefinition(kind)
    if isinstance(value, (list, tuple)):
        return SliceTypeDefinition(INTERFACE_TYPE)
    if isinstance(value, dict):
        return MapTypeDefinition(INTERFACE_TYPE, INTERFACE_TYPE)
    if value is None:
        return INTERFACE_TYPE
    record = record_type_of(value)
    if record is not None:
        return record
    cls = type(value)
    return OpaqueTypeDefinition(name=cls.__qualname__, package=cls.__module__, python_type=cls)


def conforms(value: Any, type_def: TypeDefinition) -> bool:
    """Check whether a value may be stored in a slot of the given type."""
    kind = type_def.kind

    if kind is Kind.POINTER:
        return value is None or conforms(value, type_def.elem)  # type: ignore[attr-defined]
    if kind is Kind.INTERFACE:
        if isinstance(type_def, OpaqueTypeDefinition) and type_def.python_type is not None:
            return value is None or isinstance(value, type_def.python_type)
        return True
    if kind.is_integer:
        if not isinstance(value, int) or isinstance(value, bool):
            return False
        low, high = type_range(kind)
        return low <= value <= high
    if kind.is_float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is Kind.STRING:
        return isinstance(value, str)
    if kind is Kind.BOOL:
        return isinstance(value, bool)
    if kind is Kind.TIME:
        return isinstance(value, datetime)
    if kind is Kind.SLICE:
        elem = type_def.elem  # type: ignore[attr-defined]
        return isinstance(value, (list, tuple)) and all(conforms(v, elem) for v in value)
    if kind is Kind.MAP:
        key, elem = type_def.key, type_def.elem  # type: ignore[attr-defined]
        return isinstance(value, dict) and all(
            conforms(k, key) and conforms(v, elem) for k, v in value.items()
        )
    if kind is Kind.STRUCT:
        if value is None or isinstance(value, type):
            return False
        record = record_type_of(value)
        return record is not None and have_same_types(record, type_def)
    return False
